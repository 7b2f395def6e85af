"""Season statistics feed client."""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from scoring_leaders.services.errors import NetworkError, ParseError

logger = logging.getLogger(__name__)

# HTTP status codes that should trigger a retry
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# Epoch values below this are seconds, above are milliseconds
_EPOCH_MILLIS_THRESHOLD = 100_000_000_000


def _safe_int(val: Any, default: int = 0) -> int:
    """Safely convert feed value to int, handling None and empty strings."""
    if val is None or val == "":
        return default
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def _safe_id(val: Any) -> str:
    """Normalize an id that may arrive as a number or a string."""
    if val is None:
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def _is_retryable_error(exception: BaseException) -> bool:
    """Check if an error should trigger a retry."""
    if isinstance(exception, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRYABLE_STATUS_CODES
    return False


def parse_last_updated(value: Any) -> datetime | None:
    """Parse the feed's freshness stamp: ISO-8601 text or an epoch number."""
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip()
        try:
            value = float(text)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                logger.warning(f"Unrecognized lastUpdated value: {text!r}")
                return None
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value >= _EPOCH_MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=UTC)
        except (OverflowError, OSError, ValueError):
            logger.warning(f"Out of range lastUpdated value: {value!r}")
            return None

    logger.warning(f"Unrecognized lastUpdated value: {value!r}")
    return None


@dataclass(slots=True, frozen=True)
class StatRecord:
    """One player's season totals from the stats feed."""

    player_id: str
    team_id: str
    name: str
    team_name: str
    games_played: int
    goals: int
    assists: int
    points: int

    @classmethod
    def from_feed(cls, raw: dict[str, Any]) -> "StatRecord":
        return cls(
            player_id=_safe_id(raw.get("playerId")),
            team_id=_safe_id(raw.get("teamId")),
            name=raw.get("name") or "",
            team_name=raw.get("teamName") or "",
            games_played=_safe_int(raw.get("gp")),
            goals=_safe_int(raw.get("goals")),
            assists=_safe_int(raw.get("assists")),
            points=_safe_int(raw.get("points")),
        )


@dataclass
class SeasonStats:
    """Parsed season feed."""

    players: list[StatRecord]
    last_updated: datetime | None


class StatsFeedClient:
    """
    Client for the season statistics feed.

    The feed is a static JSON file served through a CDN, so every request
    carries a ``t=<epoch millis>`` query parameter to bypass stale copies.
    Transient failures are retried; anything left over surfaces as
    NetworkError.
    """

    def __init__(self, feed_url: str, user_agent: str | None = None) -> None:
        self.feed_url = feed_url
        self._headers = {"User-Agent": user_agent} if user_agent else {}
        self._lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy initialization, coroutine-safe)."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(headers=self._headers)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        async with self._lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> "StatsFeedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception(_is_retryable_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get(self) -> httpx.Response:
        """GET the feed with a cache-busting parameter, retrying transient errors."""
        client = await self._get_client()
        response = await client.get(
            self.feed_url, params={"t": int(time.time() * 1000)}
        )
        response.raise_for_status()
        return response

    async def fetch_season_stats(self) -> SeasonStats:
        """
        Fetch and parse the season feed.

        Returns:
            SeasonStats with player records in feed order

        Raises:
            NetworkError: If the feed cannot be retrieved
            ParseError: If the body is not a feed document
        """
        try:
            response = await self._get()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"Stats feed returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Stats feed unreachable: {type(e).__name__}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Stats feed is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("players"), list):
            raise ParseError("Stats feed is missing the 'players' list")

        players = [
            StatRecord.from_feed(raw) for raw in data["players"] if isinstance(raw, dict)
        ]
        last_updated = parse_last_updated(data.get("lastUpdated"))

        logger.info(f"Loaded {len(players)} players from stats feed")
        logger.info(f"Last updated: {data.get('lastUpdated')}")
        return SeasonStats(players=players, last_updated=last_updated)
