"""Shared pytest fixtures for leaderboard tests."""

from pathlib import Path

import pytest

from scoring_leaders.config import Settings
from scoring_leaders.services.timed_cache import JsonFileStore, TimedCache

STATS_URL = "https://stats.test/stats-2025-26.json"
ROSTER_TEMPLATE = "https://rosters.test/roster/show/{team_id}?subseason={season}"
SEASON = "948428"


def roster_row(number: str, player_id: str | None, name: str, position: str, grade: str) -> str:
    """One <tr> of a roster table in the roster site's layout."""
    if player_id is None:
        name_cell = name
    else:
        name_cell = f'<a href="https://www.legacy.hockey/roster_players/{player_id}?subseason=948428">{name}</a>'
    return (
        "<tr>"
        f"<td>{number}</td>"
        '<td><img src="/photo.png"></td>'
        f"<td>{name_cell}</td>"
        f"<td> {position} </td>"
        f"<td> {grade} </td>"
        "</tr>"
    )


def roster_page(heading: str, rows: list[str]) -> str:
    """A roster page with a page-title heading and a table of rows."""
    return f"""
    <html>
      <head><title>{heading}</title></head>
      <body>
        <h1 class="page-title">{heading}</h1>
        <table>
          <thead>
            <tr><th>#</th><th></th><th>Name</th><th>Pos</th><th>Grade</th></tr>
          </thead>
          <tbody>
            {"".join(rows)}
          </tbody>
        </table>
      </body>
    </html>
    """


class FakeClock:
    """Settable clock returning epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "cache" / "rosters.json"


@pytest.fixture
def cache(cache_path: Path, clock: FakeClock) -> TimedCache:
    """Roster cache on a temp file with a controllable clock."""
    return TimedCache(JsonFileStore(cache_path), clock=clock)


@pytest.fixture
def settings(cache_path: Path) -> Settings:
    """Settings pointing at test hosts with no throttle delay."""
    return Settings(
        stats_feed_url=STATS_URL,
        roster_url_template=ROSTER_TEMPLATE,
        roster_season=SEASON,
        cache_path=str(cache_path),
        roster_delay=0.0,
        roster_delay_constrained=0.0,
    )
