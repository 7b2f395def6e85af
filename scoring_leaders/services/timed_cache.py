"""Persistent roster cache with a fixed time-to-live.

Rosters change rarely during a season, so each team's parsed roster is kept
on disk for a week. Expired entries are ignored on read, never deleted
eagerly; the next successful fetch overwrites them.

Storage layout (one JSON file, keyed by ``team_<teamId>_<season>``):

    {"team_123_948428": "{\"data\": {...}, \"teamName\": \"...\", \"timestamp\": 1700000000000}"}

Values are JSON strings so the store stays a plain string key/value store.
"""

import json
import logging
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from scoring_leaders.services.errors import CacheWriteError
from scoring_leaders.services.roster_parser import RosterEntry, TeamRoster

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60  # 7 days


def cache_key(team_id: str, season: str) -> str:
    """Build the cache key for a team's roster in a season."""
    return f"team_{team_id}_{season}"


class JsonFileStore:
    """String key/value store persisted to a single JSON file.

    Every write rewrites the whole file through a temp file and an atomic
    replace, so a crash mid-write leaves the previous contents intact.
    """

    def __init__(self, path: str | Path, max_bytes: int | None = None) -> None:
        self.path = Path(path)
        self.max_bytes = max_bytes

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError as e:
            logger.warning(f"Cache file {self.path} is not UTF-8, ignoring it: {e}")
            return {}
        except OSError as e:
            logger.warning(f"Could not read cache file {self.path}: {e}")
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Cache file {self.path} is corrupt, ignoring it: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Cache file {self.path} is not a JSON object, ignoring it")
            return {}
        return data

    def _dump(self, data: dict[str, str]) -> None:
        encoded = json.dumps(data)
        if self.max_bytes is not None and len(encoded.encode("utf-8")) > self.max_bytes:
            raise CacheWriteError(
                f"Cache quota exceeded ({self.max_bytes} bytes) for {self.path}"
            )

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(encoded)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheWriteError(f"Could not write cache file {self.path}: {e}") from e

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def keys(self) -> list[str]:
        return list(self._load())

    def clear(self) -> None:
        self._dump({})


class CachedRoster(BaseModel):
    """Stored roster record: player map, team name and write time in epoch millis."""

    model_config = ConfigDict(populate_by_name=True)

    data: dict[str, dict[str, str]]
    team_name: str = Field(default="", alias="teamName")
    timestamp: int

    def to_team_roster(self) -> TeamRoster:
        players = {
            player_id: RosterEntry(
                number=entry.get("number", ""),
                position=entry.get("position", ""),
                grade=entry.get("grade", ""),
            )
            for player_id, entry in self.data.items()
        }
        return TeamRoster(team_name=self.team_name, players=players)

    @classmethod
    def from_team_roster(cls, roster: TeamRoster, timestamp: int) -> "CachedRoster":
        data = {
            player_id: {
                "number": entry.number,
                "position": entry.position,
                "grade": entry.grade,
            }
            for player_id, entry in roster.players.items()
        }
        return cls(data=data, team_name=roster.team_name, timestamp=timestamp)


class TimedCache:
    """Roster cache that treats entries older than the TTL as absent."""

    def __init__(
        self,
        store: JsonFileStore,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the cache.

        Args:
            store: Persistent string key/value store
            ttl_seconds: Maximum entry age before it is ignored
            clock: Returns current time in epoch seconds (injectable for tests)
        """
        self.store = store
        self.ttl_ms = ttl_seconds * 1000
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _read(self, key: str) -> CachedRoster | None:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return CachedRoster.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable cache entry {key}: {e.error_count()} errors")
            return None

    def get(self, key: str) -> TeamRoster | None:
        """Return the cached roster if present and younger than the TTL."""
        record = self._read(key)
        if record is None:
            return None

        age = self._now_ms() - record.timestamp
        if age >= self.ttl_ms:
            logger.debug(f"Cache entry {key} expired ({age / 1000:.0f}s old)")
            return None
        return record.to_team_roster()

    def set(self, key: str, roster: TeamRoster) -> None:
        """Store a roster stamped with the current time.

        Raises:
            CacheWriteError: If the record cannot be serialized or persisted
        """
        record = CachedRoster.from_team_roster(roster, timestamp=self._now_ms())
        try:
            value = record.model_dump_json(by_alias=True)
        except (TypeError, ValueError) as e:
            raise CacheWriteError(f"Could not serialize roster for {key}: {e}") from e
        self.store.set(key, value)

    def clear(self) -> None:
        """Remove every cached roster."""
        self.store.clear()

    def stats(self) -> dict[str, Any]:
        """Get cache statistics for monitoring."""
        now = self._now_ms()
        fresh = 0
        expired = 0
        for key in self.store.keys():
            record = self._read(key)
            if record is None:
                continue
            if now - record.timestamp < self.ttl_ms:
                fresh += 1
            else:
                expired += 1
        return {
            "path": str(self.store.path),
            "entries": fresh + expired,
            "fresh": fresh,
            "expired": expired,
            "ttl_seconds": self.ttl_ms // 1000,
        }
