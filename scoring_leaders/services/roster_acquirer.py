"""Sequential, throttled roster acquisition with a cache in front."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

from scoring_leaders.services.errors import CacheWriteError
from scoring_leaders.services.roster_parser import TeamRoster
from scoring_leaders.services.timed_cache import TimedCache, cache_key

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class RosterFetcher(Protocol):
    async def fetch_roster(self, team_id: str, season: str) -> TeamRoster: ...


@dataclass
class AcquisitionResult:
    """Rosters gathered for one run plus the teams that could not be loaded."""

    rosters: dict[str, TeamRoster] = field(default_factory=dict)
    failures: set[str] = field(default_factory=set)
    cache_hits: int = 0
    fetched: int = 0


class RosterAcquirer:
    """
    Loads rosters for a set of teams, one team at a time.

    For each team: cached roster if fresh, else a network fetch followed by a
    cache write and a fixed pause. The pause throttles requests to the roster
    site and is skipped after cache hits. A failing team is recorded and
    skipped; it never stops the batch.
    """

    def __init__(
        self,
        fetcher: RosterFetcher,
        cache: TimedCache,
        delay: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.fetcher = fetcher
        self.cache = cache
        self.delay = delay
        self._sleep = sleep

    def _lookup(self, key: str) -> TeamRoster | None:
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning(f"Could not read cache entry {key}, fetching instead: {e}")
            return None

    def _store(self, key: str, roster: TeamRoster) -> None:
        try:
            self.cache.set(key, roster)
        except CacheWriteError as e:
            logger.warning(f"Could not cache {key}: {e}")

    async def acquire_all(
        self,
        team_ids: Iterable[str],
        season: str,
        on_progress: ProgressCallback | None = None,
    ) -> AcquisitionResult:
        """
        Acquire every team's roster.

        Args:
            team_ids: Distinct team ids, processed in iteration order
            season: Season identifier used for URLs and cache keys
            on_progress: Called with (completed, total) after every team

        Returns:
            AcquisitionResult with loaded rosters and failed team ids
        """
        teams = list(team_ids)
        total = len(teams)
        result = AcquisitionResult()

        for completed, team_id in enumerate(teams, start=1):
            key = cache_key(team_id, season)
            roster = self._lookup(key)
            try:
                if roster is not None:
                    logger.debug(f"Cache hit for team {team_id}")
                    result.cache_hits += 1
                else:
                    roster = await self.fetcher.fetch_roster(team_id, season)
                    result.fetched += 1
                    self._store(key, roster)
                    await self._sleep(self.delay)

                result.rosters[team_id] = roster
            except Exception as e:
                result.failures.add(team_id)
                logger.warning(f"Failed to fetch team {team_id}: {e}")

            if on_progress is not None:
                on_progress(completed, total)

        logger.info(
            f"Acquired {len(result.rosters)}/{total} rosters "
            f"({result.cache_hits} cached, {result.fetched} fetched, "
            f"{len(result.failures)} failed)"
        )
        return result
