from __future__ import annotations

import logging
from typing import Any, Callable

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game.errors import GameError, RoomNotFound
from ..game.registry import RoomRegistry
from ..game.room import Room
from . import events

logger = logging.getLogger(__name__)


def _text(payload: dict, key: str):
    value = payload.get(key)
    return value if isinstance(value, str) else None


def register_socketio_handlers(socketio: SocketIO, registry: RoomRegistry) -> None:
    def _fail(error_event: str, exc: GameError) -> dict:
        logger.debug("sid=%s rejected: %s", request.sid, exc.code)
        emit(error_event, exc.to_payload())
        return {"ok": False, "error": exc.code}

    def _in_room(error_event: str, action: Callable[[Room, dict], Any]) -> Callable:
        """Run ``action`` against the caller's room, turning GameError into an error reply."""

        def handler(data=None):
            payload = data if isinstance(data, dict) else {}
            try:
                room = registry.room_of(request.sid)
                if room is None:
                    raise RoomNotFound()
                extra = action(room, payload)
            except GameError as exc:
                return _fail(error_event, exc)
            return {"ok": True, **(extra or {})}

        return handler

    def _leave_current_room() -> None:
        code, _ = registry.leave(request.sid)
        if code:
            leave_room(code)

    def _leave_previous_room(previous: Room | None, current: Room) -> None:
        # Only called once the new room has accepted the player.
        if previous is None or previous is current:
            return
        registry.remove_player(previous.code, request.sid)
        leave_room(previous.code)

    @socketio.on("connect")
    def on_connect():
        logger.info("Client connected: %s", request.sid)

    @socketio.on(events.ROOM_CREATE)
    def room_create(data):
        payload = data if isinstance(data, dict) else {}
        settings = payload.get("settings")

        previous = registry.room_of(request.sid)
        try:
            room = registry.create_room(request.sid, payload.get("name"), settings)
        except GameError as exc:
            return _fail(events.ROOM_ERROR, exc)

        _leave_previous_room(previous, room)
        join_room(room.code)
        emit(events.ROOM_CREATED, {"roomCode": room.code, "playerId": request.sid})
        room.broadcast_state()
        return {"ok": True, "roomCode": room.code, "playerId": request.sid}

    @socketio.on(events.ROOM_JOIN)
    def room_join(data):
        payload = data if isinstance(data, dict) else {}
        room_code = str(payload.get("roomCode", "")).strip().upper()
        if not room_code:
            return _fail(events.ROOM_ERROR, RoomNotFound())

        previous = registry.room_of(request.sid)
        try:
            room = registry.join_room(room_code, request.sid, payload.get("name"))
        except GameError as exc:
            return _fail(events.ROOM_ERROR, exc)

        _leave_previous_room(previous, room)
        join_room(room.code)
        emit(events.ROOM_JOINED, {"roomCode": room.code, "playerId": request.sid})
        room.broadcast_state()
        return {"ok": True, "roomCode": room.code, "playerId": request.sid}

    @socketio.on(events.ROOM_LEAVE)
    def room_leave(data=None):
        _leave_current_room()
        return {"ok": True}

    socketio.on_event(
        events.ROOM_SETTINGS,
        _in_room(
            events.ROOM_ERROR,
            lambda room, p: {"settings": room.update_settings(request.sid, p.get("settings")).public()},
        ),
    )
    socketio.on_event(
        events.TEAM_ADD,
        _in_room(events.ROOM_ERROR, lambda room, p: room.add_team(request.sid)),
    )
    socketio.on_event(
        events.TEAM_REMOVE,
        _in_room(events.ROOM_ERROR, lambda room, p: room.remove_team(request.sid, p.get("teamIndex"))),
    )
    socketio.on_event(
        events.TEAM_MOVE,
        _in_room(
            events.ROOM_ERROR,
            lambda room, p: room.move_player(request.sid, str(p.get("playerId", "")), p.get("teamIndex")),
        ),
    )
    socketio.on_event(
        events.GAME_START,
        _in_room(events.GAME_ERROR, lambda room, p: room.start_game(request.sid)),
    )
    socketio.on_event(
        events.CLUE_SUBMIT,
        _in_room(events.GAME_ERROR, lambda room, p: room.submit_clue(request.sid, _text(p, "text"))),
    )
    socketio.on_event(
        events.GUESS_SUBMIT,
        _in_room(events.GAME_ERROR, lambda room, p: room.submit_guess(request.sid, _text(p, "text"))),
    )
    socketio.on_event(
        events.STEAL_SUBMIT,
        _in_room(events.GAME_ERROR, lambda room, p: room.submit_steal(request.sid, _text(p, "text"))),
    )
    socketio.on_event(
        events.ROUND_PASS,
        _in_room(events.GAME_ERROR, lambda room, p: room.pass_turn(request.sid)),
    )
    socketio.on_event(
        events.GAME_PLAY_AGAIN,
        _in_room(events.GAME_ERROR, lambda room, p: room.play_again(request.sid)),
    )

    @socketio.on("disconnect")
    def on_disconnect(*args):
        code, room = registry.leave(request.sid)
        logger.info(
            "Client disconnected: %s (room=%s%s)",
            request.sid, code, ", deleted" if code and room is None else "",
        )
