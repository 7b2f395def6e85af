"""Roster page client: one deadline-bounded request per team."""

import asyncio
import logging

import httpx

from scoring_leaders.services.errors import FetchTimeoutError, NetworkError
from scoring_leaders.services.roster_parser import TeamRoster, parse_roster_page

logger = logging.getLogger(__name__)

DEFAULT_ROSTER_TIMEOUT = 10.0


class RosterClient:
    """
    Fetches and parses team roster pages.

    Each request runs under its own deadline. When the deadline passes the
    request task is cancelled, which closes the underlying connection; the
    caller only sees FetchTimeoutError for that one team. Caching is the
    caller's job.
    """

    def __init__(
        self,
        url_template: str,
        timeout: float = DEFAULT_ROSTER_TIMEOUT,
        user_agent: str | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            url_template: Roster URL with {team_id} and {season} placeholders
            timeout: Seconds allowed for a full response
            user_agent: Optional User-Agent header
        """
        self.url_template = url_template
        self.timeout = timeout
        self._headers = {"User-Agent": user_agent} if user_agent else {}
        self._lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy initialization, coroutine-safe)."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        headers=self._headers,
                        timeout=self.timeout,
                        follow_redirects=True,
                    )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        async with self._lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self) -> "RosterClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    def roster_url(self, team_id: str, season: str) -> str:
        return self.url_template.format(team_id=team_id, season=season)

    async def fetch_roster(self, team_id: str, season: str) -> TeamRoster:
        """
        Fetch and parse one team's roster page.

        Raises:
            NetworkError: On transport failure or a non-success status
            FetchTimeoutError: If no full response arrives within the timeout
        """
        url = self.roster_url(team_id, season)
        client = await self._get_client()

        try:
            async with asyncio.timeout(self.timeout):
                response = await client.get(url)
        except (TimeoutError, httpx.TimeoutException) as e:
            raise FetchTimeoutError(
                f"Roster for team {team_id} timed out after {self.timeout:.0f}s"
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(
                f"Roster for team {team_id} unreachable: {type(e).__name__}: {e}"
            ) from e

        if not response.is_success:
            raise NetworkError(f"HTTP {response.status_code}")

        roster = parse_roster_page(response.text)
        logger.debug(
            f"Parsed roster for team {team_id}: {roster.team_name!r}, "
            f"{len(roster.players)} players"
        )
        return roster
