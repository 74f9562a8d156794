"""Configuration management for modelvalidate using Pydantic models."""

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CONFIG_FILE_NAME = ".modelvalidate.json"

# Value written into a foreign key that cannot be resolved yet. It satisfies
# presence and type rules but never matches a stored row.
UNRESOLVED_KEY = -1


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class RelationsConfig(BaseModel):
    """Relation traversal configuration section."""
    enabled: bool = True
    key_separator: str = Field(alias="keySeparator", default=".")
    unresolved_key: int = Field(alias="unresolvedKey", default=UNRESOLVED_KEY)
    guard_cycles: bool = Field(alias="guardCycles", default=True)
    max_depth: int | None = Field(alias="maxDepth", default=None)

    @field_validator("key_separator")
    @classmethod
    def validate_key_separator(cls, v):
        if not v:
            raise ValueError("key_separator must not be empty")
        return v

    @field_validator("max_depth")
    @classmethod
    def validate_max_depth(cls, v):
        if v is not None and v < 1:
            raise ValueError("max_depth must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_cycle_bound(self):
        if not self.guard_cycles and self.max_depth is None:
            raise ValueError("max_depth is required when guard_cycles is off")
        return self

    model_config = ConfigDict(populate_by_name=True)


class ScenarioConfig(BaseModel):
    """Default scenario names for new and persisted records."""
    insert: str = "insert"
    update: str = "update"

    @field_validator("insert", "update")
    @classmethod
    def validate_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("scenario names must not be empty")
        return v

    @model_validator(mode="after")
    def validate_distinct(self):
        if self.insert == self.update:
            raise ValueError(f"insert and update scenarios must differ, both are: {self.insert}")
        return self

    model_config = ConfigDict(populate_by_name=True)


class EngineConfig(BaseModel):
    """Rule engine configuration section."""
    format_checks: bool = Field(alias="formatChecks", default=True)
    messages: dict[str, str] = Field(default_factory=dict)  # rule name -> message template
    attributes: dict[str, str] = Field(default_factory=dict)  # field -> display name

    model_config = ConfigDict(populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.INFO

    model_config = ConfigDict(use_enum_values=True)


class ModelValidateConfig(BaseModel):
    """Complete modelvalidate configuration model."""
    relations: RelationsConfig = Field(default_factory=RelationsConfig)
    scenarios: ScenarioConfig = Field(default_factory=ScenarioConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> ModelValidateConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .modelvalidate.json

    Returns:
        ModelValidateConfig: Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return ModelValidateConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}") from e
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}") from e

    return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .modelvalidate.json by searching up the directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:  # Reached root directory
            break
        current = parent

    return None


def create_default_config() -> ModelValidateConfig:
    """Create default configuration."""
    return ModelValidateConfig()
