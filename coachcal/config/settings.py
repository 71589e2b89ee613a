import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    SQLite is meant for local development only. Set DATABASE_URL to a
    PostgreSQL connection string for deployed environments.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "coachcal.db"
    abs_path = db_path.resolve()
    db_url = f"sqlite:///{abs_path}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    placement_search_window_days: int = Field(
        default=30,
        validation_alias="PLACEMENT_SEARCH_WINDOW_DAYS",
        description="Maximum number of candidate days examined per session during program placement",
    )
    reschedule_max_week_jumps: int = Field(
        default=52,
        validation_alias="RESCHEDULE_MAX_WEEK_JUMPS",
        description="Maximum number of one-week jumps when a rescheduled session collides or lands on a blocked date",
    )
    reschedule_respect_blocked_dates: bool = Field(
        default=True,
        validation_alias="RESCHEDULE_RESPECT_BLOCKED_DATES",
        description="Skip blocked dates when sliding remaining sessions forward",
    )
    lock_backend: str = Field(
        default="local",
        validation_alias="LOCK_BACKEND",
        description="Per-client schedule lock backend: 'local' (in-process) or 'redis'",
    )
    lock_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="LOCK_TIMEOUT_SECONDS",
        description="How long a reschedule pass waits for the client's schedule lock",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("placement_search_window_days", "reschedule_max_week_jumps")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Search bounds must allow at least one candidate."""
        if value < 1:
            logger.warning(f"Scheduling search bound must be >= 1, got {value}. Using 1.")
            return 1
        return value

    @field_validator("lock_backend")
    @classmethod
    def validate_lock_backend(cls, value: str) -> str:
        """Validate lock backend name."""
        lowered = value.lower()
        if lowered not in {"local", "redis"}:
            logger.warning(f"Unknown LOCK_BACKEND '{value}'. Falling back to 'local'.")
            return "local"
        return lowered

    @field_validator("lock_timeout_seconds")
    @classmethod
    def validate_lock_timeout(cls, value: float) -> float:
        """Lock wait must be >= 0; 0 means a single attempt."""
        if value < 0:
            logger.warning(f"LOCK_TIMEOUT_SECONDS must be >= 0, got {value}. Using 0.")
            return 0.0
        return value


settings = Settings()
