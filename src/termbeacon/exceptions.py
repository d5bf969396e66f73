"""Custom exception hierarchy for TermBeacon."""

from typing import Optional


class TermBeaconError(Exception):
    """Base exception for all TermBeacon errors."""

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(TermBeaconError):
    """Error in configuration loading or validation."""

    pass


class ValidationError(TermBeaconError):
    """Error in input validation."""

    pass


class DatabaseError(TermBeaconError):
    """Error in database operations."""

    pass


class MappingError(TermBeaconError):
    """Error while managing the mapping set."""

    pass


class DuplicateMappingError(MappingError):
    """A mapping with the same search and mapped terms already exists."""

    pass


class MappingNotFoundError(MappingError):
    """No mapping exists at the requested index."""

    pass


class HighlightError(TermBeaconError):
    """Error in the highlighting engine."""

    pass


class DomApplyError(HighlightError):
    """Error while rewriting document nodes."""

    pass


class SchedulerError(TermBeaconError):
    """Error in the idle scheduler."""

    pass
