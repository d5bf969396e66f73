"""Text utilities shared by mapping input parsing and the DOM walker."""

TERM_SEPARATOR = ";"


def parse_terms(raw: str, separator: str = TERM_SEPARATOR) -> tuple[str, ...]:
    """Split a ``;``-separated term list, trimming and dropping blanks.

    Order and duplicates are preserved: display order matters to users.
    """
    return tuple(term.strip() for term in raw.split(separator) if term.strip())


def join_terms(terms: tuple[str, ...] | list[str], separator: str = TERM_SEPARATOR) -> str:
    """Inverse of parse_terms for display and duplicate detection."""
    return separator.join(terms)


def is_blank(text: str) -> bool:
    """True when the text is empty or whitespace only."""
    return not text.strip()
