"""Output schemas."""

from scoring_leaders.schemas.leaderboard import (
    LeaderboardPlayerResponse,
    LeaderboardResponse,
)

__all__ = [
    "LeaderboardPlayerResponse",
    "LeaderboardResponse",
]
