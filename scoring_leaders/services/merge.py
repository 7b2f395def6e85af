"""Join stats with roster metadata, filter by grade, rank by points.

These functions are stateless apart from the per-run RosterAccumulator and
have no network or cache dependencies, making them easy to test in isolation.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from scoring_leaders.services.roster_parser import RosterEntry, TeamRoster
from scoring_leaders.services.stats_feed import StatRecord

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


@dataclass(slots=True, frozen=True)
class MergedPlayer:
    """A leaderboard row: feed totals plus roster position and grade."""

    name: str
    team: str
    position: str
    grade: str
    games_played: int
    goals: int
    assists: int
    points: int


@dataclass
class RosterAccumulator:
    """Rosters loaded during one run, flattened to a single player lookup.

    A player id found on more than one roster keeps the entry from the team
    added last.
    """

    players: dict[str, RosterEntry] = field(default_factory=dict)
    team_names: dict[str, str] = field(default_factory=dict)

    def add(self, team_id: str, roster: TeamRoster) -> None:
        for player_id, entry in roster.players.items():
            if player_id in self.players:
                logger.warning(
                    f"Player {player_id} appears on more than one roster, "
                    f"using team {team_id}"
                )
            self.players[player_id] = entry
        if roster.team_name:
            self.team_names[team_id] = roster.team_name

    @classmethod
    def from_rosters(cls, rosters_by_team: Mapping[str, TeamRoster]) -> "RosterAccumulator":
        accumulator = cls()
        for team_id, roster in rosters_by_team.items():
            accumulator.add(team_id, roster)
        return accumulator


def distinct_team_ids(stat_records: Iterable[StatRecord]) -> list[str]:
    """Team ids referenced by the feed, in first-seen order, without blanks."""
    seen: dict[str, None] = {}
    for record in stat_records:
        if record.team_id:
            seen.setdefault(record.team_id, None)
    return list(seen)


def merge_players(
    stat_records: Iterable[StatRecord],
    rosters_by_team: Mapping[str, TeamRoster] | RosterAccumulator,
    grade_filter: str,
) -> list[MergedPlayer]:
    """Build leaderboard rows for feed players whose roster grade matches.

    Players without a roster entry, or whose grade differs from grade_filter
    (exact string comparison), are left out. Output keeps feed order.

    Args:
        stat_records: Feed records in feed order
        rosters_by_team: Acquired rosters keyed by team id, or an accumulator
        grade_filter: Grade to keep, e.g. "9"

    Returns:
        Matching players in feed order
    """
    if isinstance(rosters_by_team, RosterAccumulator):
        accumulator = rosters_by_team
    else:
        accumulator = RosterAccumulator.from_rosters(rosters_by_team)

    merged: list[MergedPlayer] = []
    for record in stat_records:
        if not record.player_id:
            continue

        entry = accumulator.players.get(record.player_id)
        if entry is None or entry.grade != grade_filter:
            continue

        merged.append(
            MergedPlayer(
                name=record.name,
                team=accumulator.team_names.get(record.team_id) or record.team_name,
                position=entry.position,
                grade=entry.grade,
                games_played=record.games_played,
                goals=record.goals,
                assists=record.assists,
                points=record.points,
            )
        )
    return merged


def rank_players(players: list[MergedPlayer], limit: int = DEFAULT_LIMIT) -> list[MergedPlayer]:
    """Sort by points descending and keep the first `limit`.

    The sort is stable: players tied on points keep their input order.
    """
    return sorted(players, key=lambda p: p.points, reverse=True)[:limit]
