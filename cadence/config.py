"""Configuration management for Cadence."""

# This module centralizes environment variable loading for the scheduler,
# including interval bounds, timing expectations and the database path.

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from cadence.scheduling.planner import DEFAULT_REVIEW_LIMIT, SESSION_WINDOW
from cadence.scheduling.quality import DEFAULT_EXPECTED_TIME_MS
from cadence.scheduling.sm2 import SchedulerSettings


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Database
    database_path: str = "data/cadence.db"

    # Interval bounds (days)
    minimum_interval: int = 1
    maximum_interval: int = 365
    max_adjustment: float = 3.0  # Cap on the mistake weight and the speed multiplier

    # Timing
    expected_time_ms: int = DEFAULT_EXPECTED_TIME_MS

    # Session planning
    review_limit: int = DEFAULT_REVIEW_LIMIT
    session_window: int = SESSION_WINDOW

    # Logging
    log_level: str = "INFO"

    @staticmethod
    def _safe_int(value: str, default: int = 0) -> int:
        """Safely parse an integer, returning default if invalid."""
        try:
            return int(value)
        except (ValueError, TypeError):
            return default

    @staticmethod
    def _safe_float(value: str, default: float = 0.0) -> float:
        """Safely parse a float, returning default if invalid."""
        try:
            return float(value)
        except (ValueError, TypeError):
            return default

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "Config":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        return cls(
            database_path=os.environ.get("DATABASE_PATH", "data/cadence.db"),
            minimum_interval=cls._safe_int(os.environ.get("MINIMUM_INTERVAL_DAYS", "1"), 1),
            maximum_interval=cls._safe_int(os.environ.get("MAXIMUM_INTERVAL_DAYS", "365"), 365),
            max_adjustment=cls._safe_float(os.environ.get("MAX_ADJUSTMENT", "3.0"), 3.0),
            expected_time_ms=cls._safe_int(
                os.environ.get("EXPECTED_TIME_MS", str(DEFAULT_EXPECTED_TIME_MS)),
                DEFAULT_EXPECTED_TIME_MS,
            ),
            review_limit=cls._safe_int(os.environ.get("REVIEW_LIMIT", str(DEFAULT_REVIEW_LIMIT)), DEFAULT_REVIEW_LIMIT),
            session_window=cls._safe_int(os.environ.get("SESSION_WINDOW", str(SESSION_WINDOW)), SESSION_WINDOW),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def scheduler_settings(self) -> SchedulerSettings:
        """Build explicit scheduler settings from this configuration.

        Raises InvalidConfigurationError if the interval bounds are inconsistent.
        """
        return SchedulerSettings(
            minimum_interval=self.minimum_interval,
            maximum_interval=self.maximum_interval,
            max_adjustment=self.max_adjustment,
        )

    def ensure_database_dir(self) -> None:
        """Ensure the database directory exists."""
        Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)
