#!/usr/bin/env python
"""
Build the grade-cohort scoring leaderboard.

Fetches the season stats feed, loads each team's roster (from the local
cache when fresh, otherwise from the roster site), keeps players in the
configured grade and prints the top scorers.

Usage:
    python -m scripts.build_leaderboard                 # Print leaderboard table
    python -m scripts.build_leaderboard --json          # Print leaderboard as JSON
    python -m scripts.build_leaderboard --grade 10      # Different grade cohort
    python -m scripts.build_leaderboard --constrained   # Slower roster throttle
    python -m scripts.build_leaderboard --cache-status  # Show roster cache status
    python -m scripts.build_leaderboard --clear-cache   # Drop cached rosters

Exits with status 1 if the stats feed could not be loaded.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from dotenv import load_dotenv

from scoring_leaders.config import Settings, get_settings
from scoring_leaders.schemas import LeaderboardPlayerResponse, LeaderboardResponse
from scoring_leaders.services.leaderboard import LeaderboardPipeline, LeaderboardResult
from scoring_leaders.services.merge import MergedPlayer
from scoring_leaders.services.roster_client import RosterClient
from scoring_leaders.services.stats_feed import StatsFeedClient
from scoring_leaders.services.timed_cache import JsonFileStore, TimedCache

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def format_last_updated(last_updated: datetime | None) -> str:
    if last_updated is None:
        return "unknown"
    return last_updated.astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleRenderer:
    """Renders the leaderboard as a plain-text table on stdout."""

    def __init__(self, title: str) -> None:
        self.title = title

    def render(self, players: list[MergedPlayer], last_updated: datetime | None) -> None:
        print(f"\n{self.title}")
        print(f"Last updated: {format_last_updated(last_updated)}")
        print("-" * 86)
        print(
            f"{'Rank':>4}  {'Name':<24} {'Team':<28} {'Pos':<4} "
            f"{'GP':>4} {'G':>4} {'A':>4} {'PTS':>4}"
        )
        print("-" * 86)
        for rank, p in enumerate(players, start=1):
            print(
                f"{rank:>4}  {p.name[:24]:<24} {p.team[:28]:<28} {p.position[:4]:<4} "
                f"{p.games_played:>4} {p.goals:>4} {p.assists:>4} {p.points:>4}"
            )
        if not players:
            print("No players found")


def build_response(result: LeaderboardResult, settings: Settings) -> LeaderboardResponse:
    """Convert a pipeline result into the JSON output model."""
    return LeaderboardResponse(
        title=settings.leaderboard_title,
        grade=settings.grade_filter,
        last_updated=result.last_updated,
        eligible_count=result.eligible_count,
        teams_total=result.teams_total,
        failed_teams=sorted(result.failed_teams),
        players=[
            LeaderboardPlayerResponse(
                rank=rank,
                name=p.name,
                team=p.team,
                position=p.position,
                grade=p.grade,
                games_played=p.games_played,
                goals=p.goals,
                assists=p.assists,
                points=p.points,
            )
            for rank, p in enumerate(result.players, start=1)
        ],
    )


def build_cache(settings: Settings) -> TimedCache:
    store = JsonFileStore(settings.cache_path, max_bytes=settings.cache_max_bytes)
    return TimedCache(store, ttl_seconds=settings.cache_ttl_seconds)


def show_cache_status(cache: TimedCache) -> None:
    """Show roster cache status."""
    stats = cache.stats()
    print("\nRoster Cache Status")
    print("-" * 40)
    print(f"Path:                {stats['path']}")
    print(f"Entries:             {stats['entries']}")
    print(f"Fresh:               {stats['fresh']}")
    print(f"Expired:             {stats['expired']}")
    print(f"TTL:                 {stats['ttl_seconds'] // 86400} days")
    print("-" * 40)


async def run_leaderboard(settings: Settings, as_json: bool = False) -> int:
    """Run the pipeline once and render its result. Returns the exit status."""
    cache = build_cache(settings)
    async with (
        StatsFeedClient(settings.stats_feed_url, user_agent=settings.user_agent) as stats_client,
        RosterClient(
            settings.roster_url_template,
            timeout=settings.roster_timeout,
            user_agent=settings.user_agent,
        ) as roster_client,
    ):
        pipeline = LeaderboardPipeline(settings, stats_client, roster_client, cache)
        result = await pipeline.run()

    if result is None:
        return 1

    if result.failed_teams:
        logger.warning(
            f"{len(result.failed_teams)}/{result.teams_total} rosters could not be loaded: "
            f"{', '.join(sorted(result.failed_teams))}"
        )

    if as_json:
        print(build_response(result, settings).model_dump_json(indent=2))
    else:
        ConsoleRenderer(settings.leaderboard_title).render(result.players, result.last_updated)
    return 0


async def main() -> None:
    parser = argparse.ArgumentParser(description="Build the scoring leaderboard")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    parser.add_argument("--grade", help="Grade to rank (default from settings)")
    parser.add_argument("--limit", type=positive_int, help="Number of players to show")
    parser.add_argument(
        "--constrained", action="store_true", help="Use the slower roster throttle"
    )
    parser.add_argument("--cache-status", action="store_true", help="Show cache status")
    parser.add_argument("--clear-cache", action="store_true", help="Drop cached rosters")
    args = parser.parse_args()

    load_dotenv(".env.local")
    load_dotenv(".env")

    overrides: dict[str, object] = {}
    if args.grade:
        overrides["grade_filter"] = args.grade
    if args.limit is not None:
        overrides["leaderboard_limit"] = args.limit
    if args.constrained:
        overrides["constrained_environment"] = True
    settings = get_settings().model_copy(update=overrides)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.cache_status:
        show_cache_status(build_cache(settings))
        return
    if args.clear_cache:
        build_cache(settings).clear()
        logger.info(f"Cleared roster cache at {settings.cache_path}")
        return

    sys.exit(await run_leaderboard(settings, as_json=args.json))


if __name__ == "__main__":
    asyncio.run(main())
