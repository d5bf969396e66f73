"""Logging configuration for TermBeacon."""

import logging
import sys
from pathlib import Path

import structlog
from structlog.stdlib import LoggerFactory

from termbeacon.config import Config

_FILE_FORMATS = {
    True: '{"time": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "message": "%(message)s"}',
    False: "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def configure_logging(config: Config) -> None:
    """Configure structured logging based on configuration.

    Log lines go to stderr so CLI output on stdout stays clean for piping
    rendered documents.
    """
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if config.logging.json_logging:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if config.logging.log_file:
        _add_file_handler(Path(config.logging.log_file), log_level, config.logging.json_logging)


def _add_file_handler(log_file_path: Path, log_level: int, json_logging: bool) -> None:
    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMATS[json_logging]))
    logging.getLogger().addHandler(file_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
