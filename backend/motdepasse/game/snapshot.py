from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .room import Room


def round_public_state(room: Room, viewer_id: str | None = None) -> dict | None:
    rnd = room.engine.round
    if rnd is None:
        return None

    is_giver = viewer_id is not None and viewer_id == rnd.giver_id
    return {
        "phase": rnd.phase.value,
        "clues": list(rnd.clues),
        "clueCount": rnd.clue_count,
        "maxClues": room.settings.max_clues,
        "timeLeft": rnd.time_left,
        "activeTeamIndex": rnd.active_team_index,
        "giverIndex": rnd.giver_index,
        "giverId": rnd.giver_id,
        # Secret fields are only filled in the giver's own copy.
        "word": rnd.word if is_giver else None,
        "category": rnd.category if is_giver else None,
        "categoryLabel": rnd.display if is_giver else None,
    }


def room_public_state(room: Room, viewer_id: str | None = None) -> dict:
    """Snapshot of ``room`` as seen by ``viewer_id`` (or by nobody in particular)."""
    players = [
        {
            "id": p.id,
            "name": p.name,
            "teamIndex": p.team_index,
            "isHost": p.id == room.host_id,
        }
        for p in room.players.values()
    ]

    payload = {
        "code": room.code,
        "phase": room.phase.value,
        "hostId": room.host_id,
        "players": players,
        "teams": room.teams.public(),
        "activeTeamIndex": room.active_team_index,
        "roundNumber": room.round_number,
        "totalRounds": room.settings.total_rounds,
        "settings": room.settings.public(),
        "round": round_public_state(room, viewer_id),
    }

    if viewer_id is not None:
        viewer = room.players.get(viewer_id)
        rnd = room.engine.round
        payload["you"] = {
            "id": viewer_id,
            "isHost": viewer_id == room.host_id,
            "teamIndex": viewer.team_index if viewer else None,
            "isGiver": bool(rnd and rnd.giver_id == viewer_id),
        }

    return payload


def rankings_payload(room: Room) -> list[dict]:
    out = []
    for rank, team in enumerate(room.teams.rankings(), start=1):
        out.append(
            {
                "rank": rank,
                "index": team.index,
                "name": team.name,
                "color": team.color,
                "score": team.score,
                "players": [room.players[pid].name for pid in team.members if pid in room.players],
            }
        )
    return out
