from __future__ import annotations

from dataclasses import replace
from typing import Any

from .errors import InvalidSettings
from .models import RoomSettings, TeamMode

LIMITS = {
    "totalRounds": ("total_rounds", 1, 30),
    "turnSeconds": ("turn_seconds", 10, 120),
    "stealSeconds": ("steal_seconds", 5, 60),
}


def parse_settings(data: Any, base: RoomSettings, word_bank=None) -> RoomSettings:
    """Validate a client settings payload and merge it over ``base``.

    Unknown keys are ignored; any present key with a bad value rejects the
    whole payload.
    """
    if data is None:
        return replace(base, categories=list(base.categories))
    if not isinstance(data, dict):
        raise InvalidSettings()

    changes: dict[str, Any] = {}
    for key, (attr, low, high) in LIMITS.items():
        if key not in data:
            continue
        raw = data[key]
        if isinstance(raw, bool):
            raise InvalidSettings(f"{key} invalide")
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise InvalidSettings(f"{key} invalide")
        if value < low or value > high:
            raise InvalidSettings(f"{key} doit être entre {low} et {high}")
        changes[attr] = value

    if "categories" in data:
        cats = data["categories"]
        if not isinstance(cats, list) or not all(isinstance(c, str) for c in cats):
            raise InvalidSettings("categories invalide")
        cats = [c.strip() for c in cats if c.strip()]
        if word_bank is not None:
            unknown = [c for c in cats if not word_bank.has_category(c)]
            if unknown:
                raise InvalidSettings(f"Catégorie inconnue: {', '.join(unknown)}")
        changes["categories"] = cats

    if "teamMode" in data:
        try:
            changes["team_mode"] = TeamMode(data["teamMode"])
        except ValueError:
            raise InvalidSettings("teamMode invalide")

    settings = replace(base, **changes)
    if "categories" not in changes:
        settings.categories = list(base.categories)
    return settings
