"""Exceptions raised by the leaderboard pipeline."""


class LeaderboardError(Exception):
    """Base class for pipeline errors."""


class NetworkError(LeaderboardError):
    """Remote host unreachable or answered with a non-success status."""


class FetchTimeoutError(LeaderboardError, TimeoutError):
    """No response received before the request deadline."""


class ParseError(LeaderboardError):
    """Fetched document is missing the structure we extract from."""


class CacheWriteError(LeaderboardError):
    """Roster could not be written to the persistent cache."""


class PipelineBusyError(LeaderboardError):
    """A pipeline run is already in flight."""
