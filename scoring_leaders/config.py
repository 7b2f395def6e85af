"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Season stats feed (JSON)
    stats_feed_url: str = (
        "https://raw.githubusercontent.com/LegacyHockey/legacy-hockey-data/main/stats-2025-26.json"
    )

    # Roster pages (HTML, one per team)
    roster_url_template: str = (
        "https://www.legacy.hockey/roster/show/{team_id}?subseason={season}"
    )
    roster_season: str = "948428"
    roster_timeout: float = 10.0  # Hard deadline per roster request
    roster_delay: float = 0.05  # Pause after each network fetch
    roster_delay_constrained: float = 0.15  # Pause on mobile/metered hosts
    constrained_environment: bool = False

    # Leaderboard
    grade_filter: str = "9"
    leaderboard_limit: int = Field(default=100, gt=0)
    leaderboard_title: str = "Top 100 Freshman Scoring Leaders"
    progress_every: int = 5  # Report roster progress every N teams

    # Roster cache
    cache_path: str = ".cache/rosters.json"
    cache_ttl_days: int = 7
    cache_max_bytes: int | None = None  # Storage quota, unlimited when unset

    # HTTP
    user_agent: str = "ScoringLeaders/0.1 (roster leaderboard)"

    # Logging
    log_level: str = "INFO"

    @property
    def cache_ttl_seconds(self) -> int:
        """Roster cache TTL in seconds."""
        return self.cache_ttl_days * 24 * 60 * 60

    @property
    def inter_request_delay(self) -> float:
        """Delay between uncached roster fetches for this environment."""
        if self.constrained_environment:
            return self.roster_delay_constrained
        return self.roster_delay


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
