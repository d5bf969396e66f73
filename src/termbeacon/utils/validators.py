"""Input validation utilities."""

import re
from pathlib import Path

from termbeacon.exceptions import ValidationError

MAX_IMPORT_SIZE = 10 * 1024 * 1024  # 10MB

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_NAMED_COLOR = re.compile(r"^[a-zA-Z]{3,20}$")


def validate_color(color: str) -> str:
    """Validate a CSS color given as hex (``#rgb``/``#rrggbb``) or a plain name."""
    value = color.strip()
    if not (_HEX_COLOR.match(value) or _NAMED_COLOR.match(value)):
        raise ValidationError(f"Invalid color: {color!r}", details="Use #rrggbb or a CSS color name")
    return value


def validate_text_file(file_path: Path, max_size: int = MAX_IMPORT_SIZE) -> str:
    """Validate a UTF-8 text file and return its content."""
    if not file_path.exists():
        raise ValidationError(f"File does not exist: {file_path}")

    if not file_path.is_file():
        raise ValidationError(f"Path is not a file: {file_path}")

    file_size = file_path.stat().st_size
    if file_size == 0:
        raise ValidationError(f"File is empty: {file_path}")

    if file_size > max_size:
        raise ValidationError(
            f"File is too large ({file_size / 1024 / 1024:.1f}MB). "
            f"Maximum size is {max_size / 1024 / 1024:.0f}MB."
        )

    try:
        return file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(f"File is not valid UTF-8: {file_path}", details=str(e)) from e
