"""Leaderboard JSON output schemas.

Built field by field from a LeaderboardResult, with ranks assigned in
leaderboard order.
"""

from datetime import datetime

from pydantic import BaseModel


class LeaderboardPlayerResponse(BaseModel):
    """A ranked player row."""

    rank: int
    name: str
    team: str
    position: str
    grade: str
    games_played: int
    goals: int
    assists: int
    points: int


class LeaderboardResponse(BaseModel):
    """Full leaderboard output."""

    title: str
    grade: str
    last_updated: datetime | None
    eligible_count: int
    teams_total: int
    failed_teams: list[str]
    players: list[LeaderboardPlayerResponse]
