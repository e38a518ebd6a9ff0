from __future__ import annotations

import logging
import random
from threading import RLock

from .errors import InvalidName, RoomNotFound
from .models import RoomSettings
from .room import Room
from .settings import parse_settings
from .timers import TimerService
from .words import WordBank

logger = logging.getLogger(__name__)

# 24 letters: I and O are left out, they read like 1 and 0.
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ"
ROOM_CODE_LENGTH = 4
MAX_NAME_LENGTH = 16


def validate_name(name) -> str:
    n = (name or "").strip() if isinstance(name, str) else ""
    if not n:
        raise InvalidName()
    if len(n) > MAX_NAME_LENGTH:
        raise InvalidName(f"Pseudo trop long ({MAX_NAME_LENGTH} caractères max)")
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        raise InvalidName()
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            raise InvalidName()
    return n


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


class RoomRegistry:
    """Owns every active room, keyed by its 4-letter code.

    Inserts and deletes on the code map happen under ``_lock``. Room locks
    are never acquired while ``_lock`` is held.
    """

    def __init__(
        self,
        broadcaster,
        scheduler,
        word_bank: WordBank | None = None,
        *,
        timers: TimerService | None = None,
        defaults: RoomSettings | None = None,
        max_players: int = 8,
        rng: random.Random | None = None,
    ) -> None:
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.word_bank = word_bank or WordBank()
        self.timers = timers or TimerService(scheduler)
        self.defaults = defaults or RoomSettings()
        self.max_players = max_players
        self._rng = rng or random.Random()
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._player_rooms: dict[str, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms

    def create_room(self, host_id: str, host_name, settings=None) -> Room:
        name = validate_name(host_name)
        room_settings = parse_settings(settings, self.defaults, self.word_bank)

        with self._lock:
            code = self._generate_code()
            room = Room(
                code,
                room_settings,
                timers=self.timers,
                scheduler=self.scheduler,
                word_bank=self.word_bank,
                broadcaster=self.broadcaster,
                max_players=self.max_players,
                rng=self._rng,
            )
            self._rooms[code] = room

        room.add_player(host_id, name)
        with self._lock:
            self._player_rooms[host_id] = code
        logger.info("Created room %s for %s", code, name)
        return room

    def join_room(self, code, player_id: str, player_name) -> Room:
        name = validate_name(player_name)
        room = self.require_room(code)
        room.add_player(player_id, name)
        with self._lock:
            if self._rooms.get(room.code) is room:
                self._player_rooms[player_id] = room.code
        return room

    def remove_player(self, code, player_id: str) -> Room | None:
        """Detach a player; returns the room, or None once it has been deleted."""
        room = self.get_room(code)
        with self._lock:
            if self._player_rooms.get(player_id) == normalize_code(code):
                del self._player_rooms[player_id]
        if room is None:
            return None

        emptied = room.remove_player(player_id)
        if not emptied:
            return room

        with self._lock:
            if self._rooms.get(room.code) is room:
                del self._rooms[room.code]
        self.timers.cancel(room.code)
        logger.info("Room %s deleted (empty)", room.code)
        return None

    def leave(self, player_id: str) -> tuple[str | None, Room | None]:
        """Remove a connection from whatever room it is in (disconnect path)."""
        with self._lock:
            code = self._player_rooms.get(player_id)
        if code is None:
            return None, None
        return code, self.remove_player(code, player_id)

    def get_room(self, code) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def require_room(self, code) -> Room:
        room = self.get_room(code)
        if room is None:
            raise RoomNotFound()
        return room

    def room_of(self, player_id: str) -> Room | None:
        with self._lock:
            code = self._player_rooms.get(player_id)
            return self._rooms.get(code) if code else None

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def _generate_code(self) -> str:
        while True:
            code = "".join(self._rng.choices(ROOM_CODE_ALPHABET, k=ROOM_CODE_LENGTH))
            if code not in self._rooms:
                return code
