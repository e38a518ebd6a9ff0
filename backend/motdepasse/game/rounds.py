"""
Per-turn state machine.

    giving_clue --clue--> guessing --wrong guess / timeout--> giving_clue
         |                    |   (fewer than max_clues given)
         |                    +--wrong guess / timeout--> stealing
         +--timeout, no clue yet--> stealing                (max_clues given)

    guessing --correct--> result
    giving_clue / guessing --pass by the giver--> result
    stealing --any attempt / timeout--> result
    result --after result_delay_seconds--> next turn or end of game

Every entry point runs with the owning room's lock held.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING

from ..realtime import events
from .errors import InvalidClue, NotYourTurn, WordBankExhausted, WrongPhase
from .models import RoomPhase, Round, RoundPhase
from .text import CLUE_MESSAGES, check_answer, clue_rejection

if TYPE_CHECKING:
    from .room import Room

logger = logging.getLogger(__name__)


class Action(str, Enum):
    CLUE = "clue"
    GUESS = "guess"
    STEAL = "steal"
    EXPIRE = "expire"
    PASS = "pass"


TRANSITIONS = {
    (RoundPhase.GIVING_CLUE, Action.CLUE): "_give_clue",
    (RoundPhase.GIVING_CLUE, Action.EXPIRE): "_clue_timeout",
    (RoundPhase.GUESSING, Action.GUESS): "_guess",
    (RoundPhase.GUESSING, Action.EXPIRE): "_miss",
    (RoundPhase.STEALING, Action.STEAL): "_steal",
    (RoundPhase.GIVING_CLUE, Action.PASS): "_pass",
    (RoundPhase.GUESSING, Action.PASS): "_pass",
    (RoundPhase.STEALING, Action.EXPIRE): "_steal_timeout",
}


class RoundEngine:
    def __init__(self, room: Room) -> None:
        self.room = room
        self.round: Round | None = None
        self._timer_token: object | None = None
        self._pending_advance = None

    # -- lifecycle --------------------------------------------------------

    def begin_turn(self) -> None:
        room = self.room
        self.stop()

        try:
            entry = room.word_bank.draw(room.settings.categories, room.used_words, 1)[0]
        except WordBankExhausted:
            logger.info("room %s: word bank exhausted, ending game", room.code)
            room.finish_game()
            return
        room.used_words.add(entry.word)

        position, giver_id = room.teams.next_giver(room.active_team_index)
        self.round = Round(
            word=entry.word,
            category=entry.category,
            display=entry.display,
            active_team_index=room.active_team_index,
            giver_index=position,
            giver_id=giver_id,
            time_left=room.settings.turn_seconds,
        )
        logger.debug(
            "room %s: round %s team=%s giver=%s",
            room.code, room.round_number, room.active_team_index, giver_id,
        )
        self._start_timer(room.settings.turn_seconds)

    def stop(self) -> None:
        """Cancel the countdown and any pending advance."""
        self._timer_token = None
        self.room.timers.cancel(self.room.code)
        if self._pending_advance is not None:
            self._pending_advance.cancel()
            self._pending_advance = None

    def reset(self) -> None:
        self.stop()
        self.round = None

    def handle(self, action: Action, actor_id: str | None = None, text=None) -> None:
        rnd = self.round
        if rnd is None:
            raise WrongPhase()
        handler = TRANSITIONS.get((rnd.phase, action))
        if handler is None:
            raise WrongPhase()
        getattr(self, handler)(rnd, actor_id, text)

    def abandon(self) -> None:
        """Resolve the live round without a winner (giver or whole team left)."""
        rnd = self.round
        if rnd is None or rnd.phase == RoundPhase.RESULT:
            return
        self._resolve(rnd, correct=False, stolen=False, team=None, abandoned=True)

    # -- transitions ------------------------------------------------------

    def _give_clue(self, rnd: Round, actor_id, text) -> None:
        if actor_id != rnd.giver_id:
            raise NotYourTurn("Ce n'est pas ton tour de donner un indice")
        reason = clue_rejection(text, rnd.word)
        if reason:
            raise InvalidClue(CLUE_MESSAGES[reason], code=reason)

        rnd.clues.append(text.strip())
        rnd.clue_count += 1
        rnd.phase = RoundPhase.GUESSING
        self._start_timer(self.room.settings.turn_seconds)
        self.room.broadcast_state()

    def _clue_timeout(self, rnd: Round, *_) -> None:
        if rnd.clue_count == 0:
            self._enter_stealing(rnd)
        else:
            self._miss(rnd)

    def _guess(self, rnd: Round, actor_id, text) -> None:
        team = self.room.teams.team(rnd.active_team_index)
        if actor_id not in team.members or actor_id == rnd.giver_id:
            raise NotYourTurn("Ce n'est pas ton tour de deviner")

        if check_answer(text, rnd.word):
            self.room.teams.increment(rnd.active_team_index)
            self._resolve(rnd, correct=True, stolen=False, team=rnd.active_team_index)
            return

        self.room.broadcaster.broadcast_to_room(
            self.room.code,
            events.GUESS_WRONG,
            {"roomCode": self.room.code, "playerId": actor_id, "text": str(text or "").strip()},
        )
        self._miss(rnd)

    def _miss(self, rnd: Round, *_) -> None:
        if rnd.clue_count >= self.room.settings.max_clues:
            self._enter_stealing(rnd)
            return
        rnd.phase = RoundPhase.GIVING_CLUE
        self._start_timer(self.room.settings.turn_seconds)
        self.room.broadcast_state()

    def _enter_stealing(self, rnd: Round) -> None:
        rnd.phase = RoundPhase.STEALING
        self._start_timer(self.room.settings.steal_seconds)
        self.room.broadcast_state()

    def _steal(self, rnd: Round, actor_id, text) -> None:
        team = self.room.teams.team_of(actor_id)
        if team is None:
            raise NotYourTurn("Tu n'es dans aucune équipe")
        if team.index == rnd.active_team_index:
            raise NotYourTurn("Tu ne peux pas voler pour ton équipe")

        if check_answer(text, rnd.word):
            self.room.teams.increment(team.index)
            self._resolve(rnd, correct=True, stolen=True, team=team.index)
        else:
            self._resolve(rnd, correct=False, stolen=False, team=None)

    def _steal_timeout(self, rnd: Round, *_) -> None:
        self._resolve(rnd, correct=False, stolen=False, team=None)

    def _pass(self, rnd: Round, actor_id, _text) -> None:
        if actor_id != rnd.giver_id:
            raise NotYourTurn("Seul le donneur peut passer")
        self._resolve(rnd, correct=False, stolen=False, team=None, passed=True)

    # -- resolution -------------------------------------------------------

    def _resolve(self, rnd: Round, correct: bool, stolen: bool, team: int | None,
                 abandoned: bool = False, passed: bool = False) -> None:
        room = self.room
        self.stop()
        rnd.phase = RoundPhase.RESULT
        rnd.time_left = 0

        result = {
            "roomCode": room.code,
            "correct": correct,
            "stolen": stolen,
            "team": team,
            "word": rnd.word,
            "category": rnd.category,
        }
        if abandoned:
            result["abandoned"] = True
        if passed:
            result["passed"] = True
        logger.info("room %s: round %s resolved %s", room.code, room.round_number, result)
        room.broadcaster.broadcast_to_room(room.code, events.ROUND_RESULT, result)
        room.broadcast_state()

        self._pending_advance = room.scheduler.call_later(
            room.settings.result_delay_seconds, self._advance_later, rnd
        )

    def _advance_later(self, rnd: Round) -> None:
        room = self.room
        with room.lock:
            if (
                room.closed
                or room.phase != RoomPhase.PLAYING
                or self.round is not rnd
                or rnd.phase != RoundPhase.RESULT
            ):
                logger.debug("room %s: stale advance ignored", room.code)
                return
            self._pending_advance = None
            self.advance()

    def advance(self) -> None:
        room = self.room
        room.round_number += 1
        nxt = room.teams.next_active(room.active_team_index)
        if nxt is None or room.round_number > room.settings.total_rounds:
            room.finish_game()
            return

        room.active_team_index = nxt
        self.begin_turn()
        if room.phase == RoomPhase.PLAYING:
            room.broadcast_state()

    # -- timer plumbing ---------------------------------------------------

    def _start_timer(self, seconds: int) -> None:
        token = object()
        self._timer_token = token
        if self.round is not None:
            self.round.time_left = seconds
        self.room.timers.start(
            self.room.code,
            seconds,
            partial(self._on_tick, token),
            partial(self._on_expire, token),
        )

    def _stale(self, token: object) -> bool:
        return self.room.closed or self._timer_token is not token or self.round is None

    def _on_tick(self, token: object, remaining: int) -> None:
        room = self.room
        with room.lock:
            if self._stale(token):
                logger.debug("room %s: stale tick ignored", room.code)
                return
            self.round.time_left = remaining
            room.broadcaster.broadcast_to_room(
                room.code, events.TIMER_TICK, {"roomCode": room.code, "timeLeft": remaining}
            )

    def _on_expire(self, token: object) -> None:
        room = self.room
        with room.lock:
            if self._stale(token):
                logger.debug("room %s: stale expiry ignored", room.code)
                return
            self._timer_token = None
            self.round.time_left = 0
            self.handle(Action.EXPIRE)
