"""
Team formation, membership and scoring for a single room.

Player records keep a weak ``team_index``; the ``Team`` owns its ordered
``members`` list. Every operation here keeps both sides in sync.
"""

from __future__ import annotations

import random

from .errors import TeamLimit, UnknownPlayer, UnknownTeam
from .models import Player, Team

TEAM_PALETTE = [
    ("Bleu", "#4A9EFF"),
    ("Rouge", "#FF4A6E"),
    ("Vert", "#4AFF8B"),
    ("Orange", "#FF8B4A"),
]

MIN_TEAMS = 2
MAX_TEAMS = 4


def _team_style(index: int) -> tuple[str, str]:
    name, color = TEAM_PALETTE[index % len(TEAM_PALETTE)]
    if index >= len(TEAM_PALETTE):
        name = f"{name} {index // len(TEAM_PALETTE) + 1}"
    return name, color


class TeamManager:
    def __init__(self, players: dict[str, Player], rng: random.Random | None = None) -> None:
        self.players = players
        self.teams: list[Team] = []
        self._rng = rng or random.Random()

    # -- formation --------------------------------------------------------

    def form_pairs(self, player_ids: list[str]) -> None:
        """Shuffle everyone and group consecutive players into teams of two."""
        shuffled = list(player_ids)
        self._rng.shuffle(shuffled)
        self.teams = []
        for i in range(0, len(shuffled), 2):
            name, color = _team_style(len(self.teams))
            team = Team(index=len(self.teams), name=name, color=color)
            self.teams.append(team)
            for pid in shuffled[i:i + 2]:
                self._attach(pid, team)

    def setup_balanced(self, count: int = MIN_TEAMS) -> None:
        self.teams = []
        for _ in range(count):
            self._append_team()
        for player in self.players.values():
            player.team_index = None
            self.assign_joiner(player.id)

    def clear(self) -> None:
        self.teams = []
        for player in self.players.values():
            player.team_index = None

    def assign_joiner(self, player_id: str) -> Team:
        """Put the player in the currently smallest team (lowest index wins ties)."""
        if not self.teams:
            raise UnknownTeam()
        team = min(self.teams, key=lambda t: (len(t.members), t.index))
        self._attach(player_id, team)
        return team

    # -- host operations (balanced mode) ----------------------------------

    def add_team(self) -> Team:
        if len(self.teams) >= MAX_TEAMS:
            raise TeamLimit(f"{MAX_TEAMS} équipes maximum")
        return self._append_team()

    def remove_team(self, index: int) -> None:
        """Drop a team, moving its members to team 0 and renumbering the rest."""
        if len(self.teams) <= MIN_TEAMS:
            raise TeamLimit(f"{MIN_TEAMS} équipes minimum")
        team = self.team(index)

        orphans = list(team.members)
        del self.teams[index]
        for i, t in enumerate(self.teams):
            t.index = i
            t.name, t.color = _team_style(i)
            for pid in t.members:
                self.players[pid].team_index = i

        target = self.teams[0]
        for pid in orphans:
            target.members.append(pid)
            self.players[pid].team_index = target.index

    def move_player(self, player_id: str, index: int) -> None:
        player = self.players.get(player_id)
        if player is None:
            raise UnknownPlayer()
        target = self.team(index)
        self.detach(player_id)
        self._attach(player_id, target)

    def detach(self, player_id: str) -> Team | None:
        player = self.players.get(player_id)
        team = self.team_of(player_id)
        if team is not None:
            pos = team.members.index(player_id)
            team.members.remove(player_id)
            # Keep the cursor on the member who was due next.
            if pos < team.giver_cursor:
                team.giver_cursor -= 1
            team.giver_cursor = team.giver_cursor % len(team.members) if team.members else 0
        if player is not None:
            player.team_index = None
        return team

    # -- lookups ----------------------------------------------------------

    def team(self, index) -> Team:
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self.teams):
            raise UnknownTeam()
        return self.teams[index]

    def team_of(self, player_id: str) -> Team | None:
        player = self.players.get(player_id)
        if player is None or player.team_index is None:
            return None
        if player.team_index >= len(self.teams):
            return None
        return self.teams[player.team_index]

    def active_indices(self) -> list[int]:
        return [t.index for t in self.teams if t.members]

    def next_active(self, current: int) -> int | None:
        """Next team with at least one member after ``current``, wrapping around."""
        count = len(self.teams)
        for step in range(1, count + 1):
            idx = (current + step) % count
            if self.teams[idx].members:
                return idx
        return None

    def next_giver(self, index: int) -> tuple[int, str]:
        """Returns (position, player id) of the team's next giver and advances its cursor."""
        team = self.team(index)
        if not team.members:
            raise UnknownTeam("Équipe vide")
        position = team.giver_cursor % len(team.members)
        team.giver_cursor = (position + 1) % len(team.members)
        return position, team.members[position]

    # -- scoring ----------------------------------------------------------

    def increment(self, index: int) -> int:
        team = self.team(index)
        team.score += 1
        return team.score

    def reset(self) -> None:
        for team in self.teams:
            team.score = 0
            team.giver_cursor = 0

    def rankings(self) -> list[Team]:
        # sorted() is stable: equal scores keep registration order.
        return sorted(self.teams, key=lambda t: t.score, reverse=True)

    def public(self) -> list[dict]:
        return [
            {
                "index": t.index,
                "name": t.name,
                "color": t.color,
                "score": t.score,
                "members": list(t.members),
            }
            for t in self.teams
        ]

    # -- internals --------------------------------------------------------

    def _append_team(self) -> Team:
        name, color = _team_style(len(self.teams))
        team = Team(index=len(self.teams), name=name, color=color)
        self.teams.append(team)
        return team

    def _attach(self, player_id: str, team: Team) -> None:
        player = self.players.get(player_id)
        if player is None:
            raise UnknownPlayer()
        team.members.append(player_id)
        player.team_index = team.index
