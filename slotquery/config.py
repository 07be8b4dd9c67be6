"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.query import DEFAULT_COUNT
from .domain.query_engine import MAX_DATE_RANGE_DAYS
from .domain.time_slots import TimePeriod


class QueryDefaults(BaseModel):
    """Defaults applied to queries that omit a field."""
    count: int = DEFAULT_COUNT
    time_preference: TimePeriod = TimePeriod.ANY
    max_range_days: int | None = MAX_DATE_RANGE_DAYS

    @field_validator("count")
    @classmethod
    def validate_count(cls, value: int) -> int:
        """Ensure the default result cap is positive."""
        if value <= 0:
            raise ValueError("count must be greater than zero")
        return value

    @field_validator("max_range_days")
    @classmethod
    def validate_max_range_days(cls, value: int | None) -> int | None:
        """Ensure the range limit, when set, is not negative."""
        if value is not None and value < 0:
            raise ValueError("max_range_days must not be negative")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    data_file: Path = Path("availability.json")
    timezone: str = "UTC"
    log_level: str = "WARNING"
    defaults: QueryDefaults = Field(default_factory=QueryDefaults)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Ensure the log level is one the logging module knows."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def resolve_data_file(self, base_dir: Path) -> Path:
        """Resolve a relative data file path against ``base_dir``."""
        if self.data_file.is_absolute():
            return self.data_file
        return base_dir / self.data_file

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
