from __future__ import annotations

from flask_socketio import SocketIO


class SocketIOBroadcaster:
    """Outbound transport: player ids are Socket.IO session ids, room codes are Socket.IO rooms."""

    def __init__(self, socketio: SocketIO) -> None:
        self._socketio = socketio

    def send_to_player(self, player_id: str, event: str, payload: dict) -> None:
        self._socketio.emit(event, payload, to=player_id)

    def broadcast_to_room(self, room_code: str, event: str, payload: dict) -> None:
        self._socketio.emit(event, payload, to=room_code)
