"""Leaderboard pipeline: stats feed -> rosters -> merge -> rank.

Sequences one run and reports to external collaborators:
- ProgressReporter receives status strings and a final hide()
- ErrorReporter receives one message when the run cannot produce a result
- Renderer (driven by the caller) receives the ranked players

Only a stats feed failure is fatal. Per-team roster failures are logged by
the acquirer and reduce the number of matched players.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from scoring_leaders.config import Settings
from scoring_leaders.services.errors import LeaderboardError, PipelineBusyError
from scoring_leaders.services.merge import (
    MergedPlayer,
    RosterAccumulator,
    distinct_team_ids,
    merge_players,
    rank_players,
)
from scoring_leaders.services.roster_acquirer import RosterAcquirer, RosterFetcher
from scoring_leaders.services.stats_feed import StatsFeedClient
from scoring_leaders.services.timed_cache import TimedCache

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    def show(self, message: str) -> None: ...

    def hide(self) -> None: ...


class ErrorReporter(Protocol):
    def show_error(self, message: str) -> None: ...


class Renderer(Protocol):
    def render(self, players: list[MergedPlayer], last_updated: datetime | None) -> None: ...


class LoggingProgressReporter:
    """Progress reporter that writes status messages to the log."""

    def show(self, message: str) -> None:
        logger.info(message)

    def hide(self) -> None:
        pass


class LoggingErrorReporter:
    def show_error(self, message: str) -> None:
        logger.error(message)


@dataclass
class LeaderboardResult:
    """Outcome of a successful run."""

    players: list[MergedPlayer]
    last_updated: datetime | None
    eligible_count: int
    teams_total: int
    failed_teams: set[str] = field(default_factory=set)
    cache_hits: int = 0


class LeaderboardPipeline:
    """
    Runs the full leaderboard pipeline.

    Runs are single-flight: calling run() while another run is in progress
    raises PipelineBusyError, since two runs would write the same cache keys.
    """

    def __init__(
        self,
        settings: Settings,
        stats_client: StatsFeedClient,
        roster_client: RosterFetcher,
        cache: TimedCache,
        progress: ProgressReporter | None = None,
        errors: ErrorReporter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.stats_client = stats_client
        self.progress = progress or LoggingProgressReporter()
        self.errors = errors or LoggingErrorReporter()
        self.acquirer = RosterAcquirer(
            roster_client,
            cache,
            delay=settings.inter_request_delay,
            sleep=sleep,
        )
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def _progress_callback(self, completed: int, total: int) -> None:
        every = max(self.settings.progress_every, 1)
        if completed % every == 0 or completed == total:
            self.progress.show(f"Loading rosters... {completed}/{total}")

    async def run(self) -> LeaderboardResult | None:
        """
        Execute one pipeline run.

        Returns:
            LeaderboardResult, or None if the stats feed could not be loaded
            (the error collaborator has been notified)

        Raises:
            PipelineBusyError: If a run is already in flight
        """
        if self._running:
            raise PipelineBusyError("A leaderboard run is already in progress")

        self._running = True
        try:
            return await self._run()
        finally:
            self._running = False

    async def _run(self) -> LeaderboardResult | None:
        settings = self.settings
        logger.info("Starting leaderboard run")
        self.progress.show("Loading player stats...")

        try:
            stats = await self.stats_client.fetch_season_stats()
        except LeaderboardError as e:
            logger.error(f"Stats feed failed: {type(e).__name__}: {e}")
            self.progress.hide()
            self.errors.show_error(f"Failed to load data: {e}")
            return None

        team_ids = distinct_team_ids(stats.players)
        logger.info(f"Found {len(team_ids)} teams")
        self.progress.show(f"Loading roster data for {len(team_ids)} teams...")

        acquired = await self.acquirer.acquire_all(
            team_ids,
            settings.roster_season,
            on_progress=self._progress_callback,
        )

        accumulator = RosterAccumulator()
        for team_id in team_ids:
            roster = acquired.rosters.get(team_id)
            if roster is not None:
                accumulator.add(team_id, roster)
        logger.info(f"Loaded {len(accumulator.players)} players from rosters")

        eligible = merge_players(stats.players, accumulator, settings.grade_filter)
        ranked = rank_players(eligible, settings.leaderboard_limit)
        logger.info(
            f"Found {len(eligible)} players in grade {settings.grade_filter}, "
            f"showing top {len(ranked)}"
        )

        self.progress.hide()
        return LeaderboardResult(
            players=ranked,
            last_updated=stats.last_updated,
            eligible_count=len(eligible),
            teams_total=len(team_ids),
            failed_teams=acquired.failures,
            cache_hits=acquired.cache_hits,
        )
