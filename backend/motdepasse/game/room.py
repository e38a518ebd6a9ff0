from __future__ import annotations

import logging
import random
from threading import RLock

from ..realtime import events
from .errors import (
    GameAlreadyStarted,
    InvalidSettings,
    NotEnoughPlayers,
    NotHost,
    RoomFull,
    RoomNotFound,
    UnknownPlayer,
    WrongPhase,
)
from .models import Player, RoomPhase, RoomSettings, RoundPhase, TeamMode
from .rounds import Action, RoundEngine
from .settings import parse_settings
from .snapshot import rankings_payload, room_public_state
from .teams import TeamManager

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2


class Room:
    """One game room.

    All public methods take ``lock``; timer ticks, expiries and the deferred
    advance take the same lock, so mutations of one room never interleave.
    Methods raise ``GameError`` subclasses without touching state when an
    action is refused.
    """

    def __init__(
        self,
        code: str,
        settings: RoomSettings,
        *,
        timers,
        scheduler,
        word_bank,
        broadcaster,
        max_players: int = 8,
        rng: random.Random | None = None,
    ) -> None:
        self.code = code
        self.settings = settings
        self.timers = timers
        self.scheduler = scheduler
        self.word_bank = word_bank
        self.broadcaster = broadcaster
        self.max_players = max_players

        self.lock = RLock()
        self.closed = False
        self.phase = RoomPhase.LOBBY
        self.host_id: str | None = None
        self.players: dict[str, Player] = {}
        self.teams = TeamManager(self.players, rng=rng)
        self.round_number = 0
        self.active_team_index = 0
        self.used_words: set[str] = set()
        self.engine = RoundEngine(self)
        self._join_counter = 0

        if settings.team_mode == TeamMode.BALANCED:
            self.teams.setup_balanced()

    # -- membership -------------------------------------------------------

    def add_player(self, player_id: str, name: str) -> Player:
        with self.lock:
            self._require_open()
            existing = self.players.get(player_id)
            if existing is not None:
                existing.name = name
                self.broadcast_state()
                return existing
            if self.phase == RoomPhase.PLAYING:
                raise GameAlreadyStarted()
            if len(self.players) >= self.max_players:
                raise RoomFull(f"La partie est complète ({self.max_players} joueurs max)")

            self._join_counter += 1
            player = Player(id=player_id, name=name, joined_order=self._join_counter)
            self.players[player_id] = player
            if self.host_id is None:
                self.host_id = player_id
                player.is_host = True
            if self.settings.team_mode == TeamMode.BALANCED:
                self.teams.assign_joiner(player_id)

            logger.info("room %s: %s joined (%d players)", self.code, name, len(self.players))
            self.broadcast_state()
            return player

    def remove_player(self, player_id: str) -> bool:
        """Detach a player; returns True when the room is now empty and closed."""
        with self.lock:
            if self.closed:
                return True
            player = self.players.get(player_id)
            if player is None:
                return False

            self.teams.detach(player_id)
            del self.players[player_id]

            if not self.players:
                self.close()
                return True

            if self.host_id == player_id:
                successor = min(self.players.values(), key=lambda p: p.joined_order)
                successor.is_host = True
                self.host_id = successor.id
                logger.info("room %s: host left, %s is now host", self.code, successor.name)

            if self.phase == RoomPhase.PLAYING:
                self._after_departure(player_id)

            self.broadcast_state()
            return False

    def _after_departure(self, player_id: str) -> None:
        if len(self.teams.active_indices()) < 2:
            logger.info("room %s: not enough teams left, ending game", self.code)
            self.finish_game()
            return

        rnd = self.engine.round
        if rnd is None or rnd.phase == RoundPhase.RESULT:
            return
        active = self.teams.team(rnd.active_team_index)
        if rnd.giver_id == player_id or not active.members:
            self.engine.abandon()

    # -- lobby ------------------------------------------------------------

    def update_settings(self, actor_id: str, data) -> RoomSettings:
        with self.lock:
            self._require_open()
            self._require_host(actor_id)
            self._require_phase(RoomPhase.LOBBY)
            settings = parse_settings(data, self.settings, self.word_bank)

            if settings.team_mode != self.settings.team_mode:
                if settings.team_mode == TeamMode.BALANCED:
                    self.teams.setup_balanced()
                else:
                    self.teams.clear()
            self.settings = settings
            self.broadcast_state()
            return settings

    def add_team(self, actor_id: str) -> None:
        with self.lock:
            self._require_team_editing(actor_id)
            self.teams.add_team()
            self.broadcast_state()

    def remove_team(self, actor_id: str, index) -> None:
        with self.lock:
            self._require_team_editing(actor_id)
            self.teams.remove_team(index)
            self.broadcast_state()

    def move_player(self, actor_id: str, player_id: str, index) -> None:
        with self.lock:
            self._require_team_editing(actor_id)
            if player_id not in self.players:
                raise UnknownPlayer()
            self.teams.move_player(player_id, index)
            self.broadcast_state()

    # -- game -------------------------------------------------------------

    def start_game(self, actor_id: str) -> None:
        with self.lock:
            self._require_open()
            self._require_host(actor_id)
            self._require_phase(RoomPhase.LOBBY)
            # Two teams with members are needed; pairs of two need a third player.
            minimum = MIN_PLAYERS + 1 if self.settings.team_mode == TeamMode.PAIRS else MIN_PLAYERS
            if len(self.players) < minimum:
                raise NotEnoughPlayers(f"Il faut au moins {minimum} joueurs pour former 2 équipes")

            if self.settings.team_mode == TeamMode.PAIRS:
                self.teams.form_pairs(list(self.players.keys()))
            elif len(self.teams.active_indices()) < 2:
                raise NotEnoughPlayers("Il faut au moins 2 équipes avec des joueurs")

            self.teams.reset()
            self.used_words.clear()
            self.phase = RoomPhase.PLAYING
            self.round_number = 1
            self.active_team_index = self.teams.active_indices()[0]
            logger.info("room %s: game started with %d teams", self.code, len(self.teams.teams))

            self.engine.begin_turn()
            if self.phase == RoomPhase.PLAYING:
                self.broadcast_state()

    def submit_clue(self, actor_id: str, text) -> None:
        self._play(Action.CLUE, actor_id, text)

    def submit_guess(self, actor_id: str, text) -> None:
        self._play(Action.GUESS, actor_id, text)

    def submit_steal(self, actor_id: str, text) -> None:
        self._play(Action.STEAL, actor_id, text)

    def pass_turn(self, actor_id: str) -> None:
        self._play(Action.PASS, actor_id, None)

    def _play(self, action: Action, actor_id: str, text) -> None:
        with self.lock:
            self._require_open()
            if actor_id not in self.players:
                raise UnknownPlayer()
            self._require_phase(RoomPhase.PLAYING)
            self.engine.handle(action, actor_id, text)

    def finish_game(self) -> None:
        with self.lock:
            self.engine.reset()
            self.phase = RoomPhase.FINISHED
            rankings = rankings_payload(self)
            logger.info("room %s: game over %s", self.code, [(r["name"], r["score"]) for r in rankings])
            self.broadcaster.broadcast_to_room(
                self.code, events.GAME_OVER, {"roomCode": self.code, "rankings": rankings}
            )
            self.broadcast_state()

    def play_again(self, actor_id: str) -> None:
        with self.lock:
            self._require_open()
            self._require_host(actor_id)
            self._require_phase(RoomPhase.FINISHED)

            self.engine.reset()
            self.phase = RoomPhase.LOBBY
            self.round_number = 0
            self.active_team_index = 0
            self.used_words.clear()
            if self.settings.team_mode == TeamMode.PAIRS:
                self.teams.clear()
            else:
                self.teams.reset()
            self.broadcast_state()

    def close(self) -> None:
        with self.lock:
            self.engine.reset()
            self.closed = True
            logger.info("room %s: closed", self.code)

    # -- output -----------------------------------------------------------

    def snapshot(self, viewer_id: str | None = None) -> dict:
        with self.lock:
            return room_public_state(self, viewer_id)

    def broadcast_state(self) -> None:
        with self.lock:
            if self.closed:
                return
            for player_id in list(self.players):
                self.broadcaster.send_to_player(player_id, events.ROOM_STATE, room_public_state(self, player_id))

    # -- guards -----------------------------------------------------------

    def _require_open(self) -> None:
        if self.closed:
            raise RoomNotFound()

    def _require_host(self, actor_id: str) -> None:
        if actor_id != self.host_id:
            raise NotHost()

    def _require_phase(self, phase: RoomPhase) -> None:
        if self.phase != phase:
            raise WrongPhase()

    def _require_team_editing(self, actor_id: str) -> None:
        self._require_open()
        self._require_host(actor_id)
        self._require_phase(RoomPhase.LOBBY)
        if self.settings.team_mode != TeamMode.BALANCED:
            raise InvalidSettings("Les équipes sont tirées au sort dans ce mode", code="teams_are_random")
