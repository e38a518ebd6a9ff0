from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("words", __name__)


@bp.get("/words/categories")
def get_categories():
    word_bank = current_app.extensions["room_registry"].word_bank
    return jsonify({"categories": word_bank.categories(), "policy": word_bank.policy.value})
