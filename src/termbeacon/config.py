"""Configuration loading for TermBeacon."""

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from termbeacon.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path.home() / ".termbeacon" / "config.toml"

MATCH_POLICIES = ("term_major", "single_cursor")


@dataclass
class EngineConfig:
    """Scheduling and matching settings for the highlighting engine."""

    chunk_size: int = 50
    window_ms: float = 50.0
    min_remaining_ms: float = 10.0
    full_pass_timeout_ms: float = 1000.0
    mutation_timeout_ms: float = 500.0
    match_policy: str = "term_major"


@dataclass
class ColorConfig:
    """Default marker colors used when a mapping record carries none."""

    search: str = "#fff34d"
    mapped: str = "#4dd0e1"


@dataclass
class DatabaseConfig:
    """Persisted mapping store settings."""

    path: str = str(Path.home() / ".termbeacon" / "termbeacon.db")


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    json_logging: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Top-level configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    colors: ColorConfig = field(default_factory=ColorConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load configuration from TOML, then apply environment overrides.

        The file is looked up in this order: ``path``, the
        ``TERMBEACON_CONFIG`` environment variable, ``~/.termbeacon/config.toml``.
        A missing default file yields the built-in defaults; a missing explicit
        file is an error.
        """
        explicit = path is not None or "TERMBEACON_CONFIG" in os.environ
        config_path = Path(path or os.environ.get("TERMBEACON_CONFIG", DEFAULT_CONFIG_PATH))

        data: dict[str, Any] = {}
        if config_path.exists():
            try:
                with open(config_path, "rb") as f:
                    data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(
                    f"Invalid configuration file: {config_path}", details=str(e)
                ) from e
        elif explicit:
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        config = cls(
            engine=_build_section(EngineConfig, data.get("engine", {}), "engine"),
            colors=_build_section(ColorConfig, data.get("colors", {}), "colors"),
            database=_build_section(DatabaseConfig, data.get("database", {}), "database"),
            logging=_build_section(LoggingConfig, data.get("logging", {}), "logging"),
        )
        config._apply_env()
        config.validate()
        return config

    def _apply_env(self) -> None:
        if level := os.environ.get("TERMBEACON_LOG_LEVEL"):
            self.logging.level = level
        if db_path := os.environ.get("TERMBEACON_DB_PATH"):
            self.database.path = db_path

    def validate(self) -> None:
        """Raise ConfigurationError if any setting is out of range."""
        engine = self.engine
        if engine.chunk_size < 1:
            raise ConfigurationError("engine.chunk_size must be at least 1")
        if engine.window_ms <= 0:
            raise ConfigurationError("engine.window_ms must be positive")
        if engine.min_remaining_ms < 0 or engine.min_remaining_ms >= engine.window_ms:
            raise ConfigurationError(
                "engine.min_remaining_ms must be between 0 and engine.window_ms"
            )
        if engine.full_pass_timeout_ms <= 0 or engine.mutation_timeout_ms <= 0:
            raise ConfigurationError("engine timeouts must be positive")
        if engine.match_policy not in MATCH_POLICIES:
            raise ConfigurationError(
                f"Unknown engine.match_policy: {engine.match_policy}",
                details=f"Expected one of {', '.join(MATCH_POLICIES)}",
            )


def _build_section(section_cls: type, values: Any, name: str) -> Any:
    if not isinstance(values, dict):
        raise ConfigurationError(f"Section [{name}] must be a table")
    known = {f.name for f in fields(section_cls)}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown keys in [{name}]: {', '.join(sorted(unknown))}"
        )
    return section_cls(**values)
