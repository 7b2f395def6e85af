"""Extraction of team name and player rows from a roster page.

Pure functions over HTML text: no network and no cache access, so they can be
tested against fixed markup fixtures.
"""

import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

# Jersey-number marker for non-playing staff rows
STAFF_MARKER = "MGR"

# Minimum cells for a player row: number, photo, name, position, grade
MIN_ROW_CELLS = 5

_PLAYER_ID_RE = re.compile(r"roster_players/(\d+)")
_ROSTER_LABEL_RE = re.compile(r"\s*Roster\s*", re.IGNORECASE)
_SEASON_RANGE_RE = re.compile(r"\s*\d{4}-\d{4}\s*")


@dataclass(slots=True, frozen=True)
class RosterEntry:
    """A player's roster metadata."""

    number: str
    position: str
    grade: str


@dataclass(slots=True)
class TeamRoster:
    """A team's resolved display name and its players keyed by player id."""

    team_name: str
    players: dict[str, RosterEntry] = field(default_factory=dict)


def _cell_text(cell) -> str:
    return cell.get_text().strip() if cell else ""


def clean_team_name(heading: str) -> str:
    """Strip the "Roster" label and a season range like 2025-2026 from a heading."""
    name = heading.strip()
    name = _ROSTER_LABEL_RE.sub("", name, count=1)
    name = _SEASON_RANGE_RE.sub("", name, count=1)
    return name.strip()


def extract_player_id(href: str | None) -> str | None:
    """Return the numeric player id embedded in a roster_players link."""
    if not href:
        return None
    match = _PLAYER_ID_RE.search(href)
    return match.group(1) if match else None


def parse_roster_page(html: str) -> TeamRoster:
    """Parse a roster page into a TeamRoster.

    Missing heading or table degrade to an empty name or an empty player map.
    Rows with fewer than five cells, staff rows, and rows whose name cell has
    no player link are skipped. Empty markup gives an empty roster.
    """
    if not html or not html.strip():
        return TeamRoster(team_name="", players={})

    soup = BeautifulSoup(html, "html.parser")

    team_name = ""
    heading = soup.select_one("h1.page-title") or soup.find("h1")
    if heading:
        team_name = clean_team_name(heading.get_text())

    players: dict[str, RosterEntry] = {}
    for row in soup.select("table tbody tr"):
        cells = row.find_all("td")
        if len(cells) < MIN_ROW_CELLS:
            continue

        number = _cell_text(cells[0])
        if number == STAFF_MARKER:
            continue

        link = cells[2].find("a")
        player_id = extract_player_id(link.get("href") if link else None)
        if player_id is None:
            continue

        players[player_id] = RosterEntry(
            number=number,
            position=_cell_text(cells[3]),
            grade=_cell_text(cells[4]),
        )

    return TeamRoster(team_name=team_name, players=players)
