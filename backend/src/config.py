"""
Configuration management for the Sports Sync Service.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Tuple


DEBUG_MODES = ("", "live", "pre", "final", "offseason", "mixed")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Application configuration."""

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "development")

    # ESPN API Configuration
    espn_api_base_url: str = os.getenv("ESPN_API_BASE_URL", "https://site.api.espn.com")

    # Concurrency and Rate Limiting
    max_concurrent_requests: int = int(os.getenv("MAX_CONCURRENT_REQUESTS", "3"))
    max_requests_per_minute: int = int(os.getenv("MAX_REQUESTS_PER_MINUTE", "60"))
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # Retry Configuration
    max_retries: int = int(os.getenv("MAX_RETRIES", "3"))
    retry_backoff_base: float = float(os.getenv("RETRY_BACKOFF_BASE", "1.0"))

    # Conditional GET cache (ETag / Last-Modified); purely an optimization
    http_cache_enabled: bool = _env_bool("HTTP_CACHE_ENABLED", "true")
    # On shutdown, give in-flight requests this long to settle before closing the pool
    shutdown_grace_seconds: float = float(os.getenv("SHUTDOWN_GRACE_SECONDS", "5"))

    # Tracked leagues and teams (team codes resolve via the league roster)
    enable_mlb: bool = _env_bool("ENABLE_MLB", "true")
    enable_nfl: bool = _env_bool("ENABLE_NFL", "true")
    enable_nhl: bool = _env_bool("ENABLE_NHL", "true")
    mlb_team: str = os.getenv("MLB_TEAM", "pit")
    nfl_team: str = os.getenv("NFL_TEAM", "pit")
    nhl_team: str = os.getenv("NHL_TEAM", "pit")

    # Live refresh override in seconds; 0 lets each league decide (pause-aware)
    live_refresh_seconds: int = int(os.getenv("LIVE_REFRESH_SECONDS", "0"))
    # Display only; day boundaries always use the local clock
    time_zone: str = os.getenv("TIME_ZONE", "")
    # Synthetic events instead of fetching: live | pre | final | offseason | mixed
    debug_mode: str = os.getenv("DEBUG_MODE", "")

    # Refresh Intervals (in seconds)
    schedule_cache_ttl: int = int(os.getenv("SCHEDULE_CACHE_TTL", "1800"))  # 30 minutes
    schedule_window_days: int = int(os.getenv("SCHEDULE_WINDOW_DAYS", "30"))
    busy_retry_seconds: int = int(os.getenv("BUSY_RETRY_SECONDS", "30"))
    error_retry_seconds: int = int(os.getenv("ERROR_RETRY_SECONDS", "300"))  # 5 minutes

    # Team logos
    icon_cache_dir: str = os.getenv("ICON_CACHE_DIR", os.path.join(os.path.expanduser("~"), ".cache", "sports-sync", "icons"))

    # Status API
    api_enabled: bool = _env_bool("API_ENABLED", "true")
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json")  # json or text

    def enabled_leagues(self) -> List[Tuple[str, str]]:
        """(league_key, team_code) for every enabled league, in display order."""
        pairs = [
            ("mlb", self.enable_mlb, self.mlb_team),
            ("nfl", self.enable_nfl, self.nfl_team),
            ("nhl", self.enable_nhl, self.nhl_team),
        ]
        return [(key, code.strip().lower()) for key, enabled, code in pairs if enabled]

    @property
    def live_refresh_override(self) -> Optional[int]:
        return self.live_refresh_seconds if self.live_refresh_seconds > 0 else None

    def validate(self):
        """Validate configuration."""
        errors = []

        if self.max_concurrent_requests < 1:
            errors.append("MAX_CONCURRENT_REQUESTS must be at least 1")
        if self.max_requests_per_minute < 1:
            errors.append("MAX_REQUESTS_PER_MINUTE must be at least 1")
        if self.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be positive")
        if self.max_retries < 0:
            errors.append("MAX_RETRIES cannot be negative")
        if self.live_refresh_seconds < 0:
            errors.append("LIVE_REFRESH_SECONDS cannot be negative")
        if self.debug_mode not in DEBUG_MODES:
            allowed = ", ".join(m for m in DEBUG_MODES if m)
            errors.append(f"DEBUG_MODE must be empty or one of {allowed}")
        if self.schedule_window_days < 1:
            errors.append("SCHEDULE_WINDOW_DAYS must be at least 1")

        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

        return True

    def __post_init__(self):
        """Validate after initialization."""
        self.debug_mode = (self.debug_mode or "").strip().lower()
        self.validate()
