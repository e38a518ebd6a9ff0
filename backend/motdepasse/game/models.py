from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RoomPhase(str, Enum):
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"


class RoundPhase(str, Enum):
    GIVING_CLUE = "giving_clue"
    GUESSING = "guessing"
    STEALING = "stealing"
    # Resolved; waiting for the next turn to begin.
    RESULT = "result"


class TeamMode(str, Enum):
    PAIRS = "pairs"
    BALANCED = "balanced"


@dataclass
class Player:
    id: str
    name: str
    team_index: int | None = None
    is_host: bool = False
    joined_order: int = 0


@dataclass
class Team:
    index: int
    name: str
    color: str
    members: list[str] = field(default_factory=list)
    score: int = 0
    giver_cursor: int = 0


@dataclass
class RoomSettings:
    total_rounds: int = 10
    turn_seconds: int = 30
    steal_seconds: int = 15
    categories: list[str] = field(default_factory=list)
    team_mode: TeamMode = TeamMode.PAIRS
    max_clues: int = 3
    result_delay_seconds: float = 3

    def public(self) -> dict:
        return {
            "totalRounds": self.total_rounds,
            "turnSeconds": self.turn_seconds,
            "stealSeconds": self.steal_seconds,
            "categories": list(self.categories),
            "teamMode": self.team_mode.value,
            "maxClues": self.max_clues,
        }


@dataclass
class Round:
    word: str
    category: str
    active_team_index: int
    giver_index: int
    giver_id: str
    time_left: int
    display: str = ""
    phase: RoundPhase = RoundPhase.GIVING_CLUE
    clues: list[str] = field(default_factory=list)
    clue_count: int = 0
