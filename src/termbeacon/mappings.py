"""Mapping records, legacy normalization and the export/import file format.

Every ingestion boundary (persisted blob, imported file, update message) goes
through :func:`normalize_mappings`, so the engine only ever sees the current
shape.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from termbeacon.exceptions import ValidationError
from termbeacon.logging_config import get_logger
from termbeacon.utils.validators import validate_text_file

logger = get_logger(__name__)

DEFAULT_SEARCH_COLOR = "#fff34d"
DEFAULT_MAPPED_COLOR = "#4dd0e1"

UPDATE_ACTION = "updateData"


@dataclass(frozen=True)
class Mapping:
    """One user rule: search terms paired with highlight terms and two colors."""

    search_terms: tuple[str, ...]
    mapped_terms: tuple[str, ...]
    search_color: str = DEFAULT_SEARCH_COLOR
    mapped_color: str = DEFAULT_MAPPED_COLOR

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used on the wire and on disk."""
        return {
            "searchTerms": list(self.search_terms),
            "mappedTerms": list(self.mapped_terms),
            "searchColor": self.search_color,
            "mappedColor": self.mapped_color,
        }

    def same_terms(self, other: "Mapping") -> bool:
        """True when both term lists match exactly, colors aside."""
        return (
            self.search_terms == other.search_terms
            and self.mapped_terms == other.mapped_terms
        )


def _coerce_terms(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(term.strip() for term in value if isinstance(term, str) and term.strip())


def _coerce_color(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def normalize_mapping(
    record: Any,
    search_color: str = DEFAULT_SEARCH_COLOR,
    mapped_color: str = DEFAULT_MAPPED_COLOR,
) -> Optional[Mapping]:
    """Convert any previously valid record shape into a Mapping.

    Legacy records carry a scalar ``mappedTerm``; it is lifted into a
    one-element ``mappedTerms``. Returns None for records that cannot satisfy
    the non-empty invariant on both sides.
    """
    if isinstance(record, Mapping):
        return record
    if not isinstance(record, dict):
        return None

    mapped_raw = record.get("mappedTerms")
    if mapped_raw is None and record.get("mappedTerm"):
        mapped_raw = [record["mappedTerm"]]

    search_terms = _coerce_terms(record.get("searchTerms"))
    mapped_terms = _coerce_terms(mapped_raw)
    if not search_terms or not mapped_terms:
        return None

    return Mapping(
        search_terms=search_terms,
        mapped_terms=mapped_terms,
        search_color=_coerce_color(record.get("searchColor"), search_color),
        mapped_color=_coerce_color(record.get("mappedColor"), mapped_color),
    )


def normalize_mappings(
    payload: Any,
    search_color: str = DEFAULT_SEARCH_COLOR,
    mapped_color: str = DEFAULT_MAPPED_COLOR,
) -> list[Mapping]:
    """Normalize a sequence of records; anything that is not a list is empty."""
    if not isinstance(payload, (list, tuple)):
        return []

    mappings: list[Mapping] = []
    dropped = 0
    for record in payload:
        mapping = normalize_mapping(record, search_color, mapped_color)
        if mapping is None:
            dropped += 1
            continue
        mappings.append(mapping)

    if dropped:
        logger.warning("Dropped malformed mapping records", dropped=dropped, kept=len(mappings))
    return mappings


def mappings_from_message(
    message: Any,
    search_color: str = DEFAULT_SEARCH_COLOR,
    mapped_color: str = DEFAULT_MAPPED_COLOR,
) -> list[Mapping]:
    """Extract the mapping set from an update notification."""
    if not isinstance(message, dict):
        return []
    action = message.get("action")
    if action is not None and action != UPDATE_ACTION:
        return []
    return normalize_mappings(message.get("mappings"), search_color, mapped_color)


def build_message(mappings: Iterable[Mapping]) -> dict[str, Any]:
    """Build the update notification sent to a running engine."""
    return {"action": UPDATE_ACTION, "mappings": [m.to_dict() for m in mappings]}


def export_mappings(mappings: list[Mapping], path: Path) -> Path:
    """Write the export file ``{"mappings": [...], "exportDate": ...}``."""
    if not mappings:
        raise ValidationError("No mappings to export")

    export_data = {
        "mappings": [m.to_dict() for m in mappings],
        "exportDate": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(export_data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Exported mappings", path=str(path), count=len(mappings))
    return path


def import_mappings(path: Path) -> list[Mapping]:
    """Read an export file and return its normalized mapping set."""
    content = validate_text_file(path)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Import file is not valid JSON: {path}", details=str(e)) from e

    if not isinstance(data, dict) or not isinstance(data.get("mappings"), list):
        raise ValidationError(
            f"Import file has no mapping list: {path}",
            details='Expected {"mappings": [...]}',
        )

    mappings = normalize_mappings(data["mappings"])
    logger.info("Imported mappings", path=str(path), count=len(mappings))
    return mappings
