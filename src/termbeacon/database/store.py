"""Mapping persistence and list-level CRUD on top of the key/value store."""

import json
from datetime import datetime
from typing import Any, Optional

from peewee import PeeweeException

from termbeacon.config import ColorConfig
from termbeacon.database.models import Setting
from termbeacon.exceptions import DatabaseError, DuplicateMappingError, MappingNotFoundError
from termbeacon.logging_config import get_logger
from termbeacon.mappings import Mapping, normalize_mappings

logger = get_logger(__name__)

MAPPINGS_KEY = "mappings"


class MappingStore:
    """Reads and writes the ``mappings`` blob.

    The whole list is replaced on every write, mirroring how the engine
    consumes it. Legacy records are normalized on load and written back once.
    """

    def __init__(self, colors: ColorConfig | None = None) -> None:
        self.colors = colors or ColorConfig()

    def get_blob(self, key: str) -> Optional[Any]:
        try:
            row = Setting.get_or_none(Setting.key == key)
        except PeeweeException as e:
            raise DatabaseError(f"Failed to read setting {key!r}", details=str(e)) from e
        if row is None:
            return None
        try:
            return json.loads(row.value)
        except json.JSONDecodeError:
            logger.warning("Stored setting is not valid JSON", key=key)
            return None

    def set_blob(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        try:
            (
                Setting.insert(key=key, value=payload, updated_at=datetime.now())
                .on_conflict_replace()
                .execute()
            )
        except PeeweeException as e:
            raise DatabaseError(f"Failed to write setting {key!r}", details=str(e)) from e

    def load(self) -> list[Mapping]:
        """Return the persisted set, normalizing legacy shapes."""
        raw = self.get_blob(MAPPINGS_KEY)
        mappings = normalize_mappings(raw, self.colors.search, self.colors.mapped)
        if isinstance(raw, list) and raw != [m.to_dict() for m in mappings]:
            self.save(mappings)
            logger.info("Normalized stored mappings", before=len(raw), after=len(mappings))
        return mappings

    def save(self, mappings: list[Mapping]) -> None:
        self.set_blob(MAPPINGS_KEY, [m.to_dict() for m in mappings])

    def add(self, mapping: Mapping) -> list[Mapping]:
        mappings = self.load()
        if any(existing.same_terms(mapping) for existing in mappings):
            raise DuplicateMappingError(
                "This mapping already exists",
                details=f"{list(mapping.search_terms)} -> {list(mapping.mapped_terms)}",
            )
        mappings.append(mapping)
        self.save(mappings)
        return mappings

    def update(self, index: int, mapping: Mapping) -> list[Mapping]:
        mappings = self.load()
        self._check_index(mappings, index)
        mappings[index] = mapping
        self.save(mappings)
        return mappings

    def delete(self, index: int) -> list[Mapping]:
        mappings = self.load()
        self._check_index(mappings, index)
        del mappings[index]
        self.save(mappings)
        return mappings

    def clear(self) -> list[Mapping]:
        self.save([])
        return []

    @staticmethod
    def _check_index(mappings: list[Mapping], index: int) -> None:
        if not 0 <= index < len(mappings):
            raise MappingNotFoundError(
                f"No mapping at index {index}",
                details=f"{len(mappings)} mapping(s) stored",
            )
