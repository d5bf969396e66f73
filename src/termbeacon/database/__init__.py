"""Persisted mapping storage."""

from termbeacon.database.manager import close_database, initialize_database
from termbeacon.database.models import Setting
from termbeacon.database.store import MappingStore

__all__ = ["MappingStore", "Setting", "close_database", "initialize_database"]
