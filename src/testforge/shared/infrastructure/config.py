"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables and .env file, optionally
overlaid with a YAML configuration file.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

import structlog
import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from testforge.shared.domain.exceptions import ConfigurationError


class EligibilityPolicy(str, Enum):
    """Rule deciding which classes receive a generated test class."""

    ANY_CLASS = "any_class"
    HAS_METHODS = "has_methods"  # At least one declared method


class CollisionPolicy(str, Enum):
    """What the write stage does when two units share a file name."""

    LAST_WRITE_WINS = "last_write_wins"
    QUALIFY = "qualify"  # Prefix the file name with the class namespace
    FAIL = "fail"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="testforge", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    log_redaction_enabled: bool = Field(default=True, description="Redact home directories in logs")

    # Pipeline
    max_parallelism: int = Field(default=4, ge=1, description="Workers per pipeline stage")
    queue_size: int = Field(
        default=0,
        ge=0,
        description="Capacity of each inter-stage queue (0 = twice max_parallelism)",
    )
    output_extension: str = Field(default=".cs", description="Extension of written test files")
    fail_fast: bool = Field(default=False, description="Stop admitting new files after the first failure")
    collision_policy: CollisionPolicy = Field(
        default=CollisionPolicy.LAST_WRITE_WINS,
        description="Handling of two units with the same file name",
    )

    # Synthesis
    eligibility_policy: EligibilityPolicy = Field(
        default=EligibilityPolicy.HAS_METHODS,
        description="Which classes get a generated test class",
    )
    interface_marker: str = Field(
        default="I",
        min_length=1,
        max_length=1,
        description="Leading letter of interface type names",
    )

    # Test framework dialect (NUnit + Moq)
    test_framework_namespace: str = Field(default="NUnit.Framework")
    mock_framework_namespace: str = Field(default="Moq")
    mock_type: str = Field(default="Mock")
    mock_object_accessor: str = Field(default="Object")
    setup_attribute: str = Field(default="SetUp")
    test_attribute: str = Field(default="Test")
    failure_marker: str = Field(default="autogenerated")

    @field_validator("output_extension")
    @classmethod
    def _normalize_extension(cls, value: str) -> str:
        """Accept both 'cs' and '.cs'."""
        if not value:
            raise ValueError("output_extension cannot be empty")
        return value if value.startswith(".") else f".{value}"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"

    @property
    def effective_queue_size(self) -> int:
        """Queue capacity actually used by the pipeline."""
        return self.queue_size or 2 * self.max_parallelism


def load_settings(config_path: Optional[Path] = None, **overrides) -> Settings:
    """
    Build settings from the environment, a YAML file and explicit overrides.

    Later sources win: environment < YAML file < keyword overrides.
    Overrides whose value is None are ignored.

    Args:
        config_path: Optional YAML file with a flat mapping of setting names
        **overrides: Explicit values (typically from CLI options)

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If the file is unreadable or values are invalid
    """
    logger = structlog.get_logger(__name__)
    values: dict = {}

    if config_path is not None:
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read config file {config_path}: {e}",
                context={"path": str(config_path)},
            ) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {config_path}: {e}",
                context={"path": str(config_path)},
            ) from e

        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping",
                context={"path": str(config_path)},
            )
        values.update(loaded)
        logger.debug("config_file_loaded", path=str(config_path), keys=sorted(loaded))

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}", context={"keys": sorted(values)}) from e


# Global settings instance
settings = Settings()
