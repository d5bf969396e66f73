"""Base engine class for TermBeacon engines."""

from abc import ABC, abstractmethod
from typing import Any


class BaseEngine(ABC):
    """Base class for all engines."""

    @abstractmethod
    def process(self, message: Any) -> Any:
        """Handle one inbound notification and return the resulting state."""
        pass
