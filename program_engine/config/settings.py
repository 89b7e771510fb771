import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues."""
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    # Use absolute path for SQLite
    db_path = Path(__file__).parent.parent.parent / "program_engine.db"
    abs_path = db_path.resolve()
    db_url = f"sqlite:///{abs_path}"
    logger.info(f"Using default database path: {db_url}")
    return db_url


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    # JSON object of module -> level, e.g. '{"program_engine.db": "WARNING"}'
    log_module_levels: dict[str, str] = Field(default_factory=dict, validation_alias="LOG_MODULE_LEVELS")
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    # Focus capacity for a user with no active enrollment
    default_focus_capacity: int = Field(default=3, validation_alias="DEFAULT_FOCUS_CAPACITY")
    reference_timezone: str = Field(default="UTC", validation_alias="REFERENCE_TIMEZONE")
    # Signups at or after this local hour start their program the next day
    start_cutoff_hour: int = Field(default=12, validation_alias="START_CUTOFF_HOUR")
    default_task_distribution: str = Field(default="spread", validation_alias="DEFAULT_TASK_DISTRIBUTION")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("default_focus_capacity")
    @classmethod
    def validate_focus_capacity(cls, value: int) -> int:
        if value < 1:
            raise ValueError("DEFAULT_FOCUS_CAPACITY must be at least 1")
        return value

    @field_validator("start_cutoff_hour")
    @classmethod
    def validate_cutoff_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError(f"START_CUTOFF_HOUR must be between 0 and 23, got {value}")
        return value

    @field_validator("default_task_distribution")
    @classmethod
    def validate_distribution(cls, value: str) -> str:
        if value not in {"spread", "repeat-daily"}:
            raise ValueError(f"DEFAULT_TASK_DISTRIBUTION must be 'spread' or 'repeat-daily', got {value}")
        return value


settings = Settings()
