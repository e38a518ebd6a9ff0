from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("rooms", __name__)


@bp.get("/rooms/<code>")
def get_room(code: str):
    room = current_app.extensions["room_registry"].get_room(code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    # Anonymous snapshot: no viewer, so no secret word.
    return jsonify(room.snapshot())
