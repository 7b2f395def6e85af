"""Tests for the leaderboard command-line helpers."""

import argparse
import json
from datetime import UTC, datetime
from pathlib import Path

import pytest
import respx
from httpx import Response

from scoring_leaders.config import Settings
from scoring_leaders.services.leaderboard import LeaderboardResult
from scoring_leaders.services.merge import MergedPlayer
from scoring_leaders.services.roster_parser import TeamRoster
from scripts.build_leaderboard import (
    ConsoleRenderer,
    build_cache,
    build_response,
    format_last_updated,
    positive_int,
    run_leaderboard,
    show_cache_status,
)
from tests.conftest import ROSTER_TEMPLATE, SEASON, STATS_URL, roster_page, roster_row


def player(name: str, points: int) -> MergedPlayer:
    return MergedPlayer(
        name=name,
        team="North Stars",
        position="F",
        grade="9",
        games_played=12,
        goals=points // 2,
        assists=points - points // 2,
        points=points,
    )


@pytest.fixture
def result() -> LeaderboardResult:
    return LeaderboardResult(
        players=[player("Alex Smith", 20), player("Ben Jones", 18)],
        last_updated=datetime(2025, 12, 1, 6, 30, tzinfo=UTC),
        eligible_count=2,
        teams_total=3,
        failed_teams={"303", "202"},
    )


class TestBuildResponse:
    def test_ranks_and_metadata(self, result: LeaderboardResult, settings: Settings):
        """Rows are numbered from 1 and run metadata is carried over."""
        response = build_response(result, settings)

        assert response.title == settings.leaderboard_title
        assert response.grade == "9"
        assert [p.rank for p in response.players] == [1, 2]
        assert response.players[0].name == "Alex Smith"
        assert response.failed_teams == ["202", "303"]
        assert response.teams_total == 3

    def test_serializes_to_json(self, result: LeaderboardResult, settings: Settings):
        payload = json.loads(build_response(result, settings).model_dump_json())

        assert payload["players"][1]["points"] == 18
        assert payload["last_updated"].startswith("2025-12-01T06:30:00")


class TestPositiveInt:
    def test_accepts_positive(self):
        assert positive_int("25") == 25

    @pytest.mark.parametrize("value", ["0", "-5"])
    def test_rejects_zero_and_negative(self, value):
        """A non-positive --limit is rejected before it reaches the settings."""
        with pytest.raises(argparse.ArgumentTypeError):
            positive_int(value)


class TestConsoleRenderer:
    def test_prints_table(self, result: LeaderboardResult, capsys: pytest.CaptureFixture):
        ConsoleRenderer("Top Scorers").render(result.players, result.last_updated)

        out = capsys.readouterr().out
        assert "Top Scorers" in out
        assert "Last updated:" in out
        assert "Alex Smith" in out
        assert "PTS" in out

    def test_empty_leaderboard(self, capsys: pytest.CaptureFixture):
        ConsoleRenderer("Top Scorers").render([], None)

        out = capsys.readouterr().out
        assert "No players found" in out
        assert "Last updated: unknown" in out

    def test_format_last_updated_none(self):
        assert format_last_updated(None) == "unknown"


class TestCacheCommands:
    def test_cache_status(self, settings: Settings, capsys: pytest.CaptureFixture):
        cache = build_cache(settings)
        cache.set("team_1_1", TeamRoster("Stars", {}))

        show_cache_status(cache)

        out = capsys.readouterr().out
        assert "Entries:             1" in out
        assert "7 days" in out

    def test_build_cache_uses_settings(self, settings: Settings, cache_path: Path):
        cache = build_cache(settings)

        assert cache.store.path == cache_path
        assert cache.ttl_ms == settings.cache_ttl_seconds * 1000


class TestRunLeaderboard:
    @respx.mock
    async def test_prints_json_and_succeeds(
        self, settings: Settings, capsys: pytest.CaptureFixture
    ):
        """A successful run prints JSON and returns exit status 0."""
        respx.get(url__startswith=STATS_URL).mock(
            return_value=Response(
                200,
                json={
                    "players": [
                        {"playerId": "1", "teamId": "101", "teamName": "Stars", "name": "A",
                         "gp": 3, "goals": 2, "assists": 1, "points": 3},
                    ],
                    "lastUpdated": 1764570600000,
                },
            )
        )
        respx.get(ROSTER_TEMPLATE.format(team_id="101", season=SEASON)).mock(
            return_value=Response(200, text=roster_page("Stars Roster", [roster_row("1", "1", "A", "F", "9")]))
        )

        status = await run_leaderboard(settings, as_json=True)

        payload = json.loads(capsys.readouterr().out)
        assert status == 0
        assert payload["players"][0]["name"] == "A"
        assert payload["players"][0]["team"] == "Stars"

    @respx.mock
    async def test_feed_failure_returns_error_status(self, settings: Settings):
        respx.get(url__startswith=STATS_URL).mock(return_value=Response(404))

        assert await run_leaderboard(settings) == 1
