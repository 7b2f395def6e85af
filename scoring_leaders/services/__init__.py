"""Service layer for the leaderboard pipeline."""

from scoring_leaders.services.leaderboard import LeaderboardPipeline, LeaderboardResult
from scoring_leaders.services.roster_client import RosterClient
from scoring_leaders.services.stats_feed import StatsFeedClient
from scoring_leaders.services.timed_cache import JsonFileStore, TimedCache

__all__ = [
    "JsonFileStore",
    "LeaderboardPipeline",
    "LeaderboardResult",
    "RosterClient",
    "StatsFeedClient",
    "TimedCache",
]
