"""Memoized literal matchers for highlight terms."""

import re

from termbeacon.logging_config import get_logger

logger = get_logger(__name__)

CacheKey = tuple[int, str, str]


class RegexCache:
    """Compiled case-insensitive literal matchers keyed by (group, term, role).

    Terms are escaped before compiling, so no user input can produce an
    invalid pattern. The cache is owned by one engine and only ever cleared
    in full, when the mapping set is replaced.
    """

    def __init__(self) -> None:
        self._patterns: dict[CacheKey, re.Pattern[str]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, group: int, term: str, role: str) -> re.Pattern[str]:
        """Return the matcher for the triple, compiling it on first use."""
        key = (group, term, role)
        pattern = self._patterns.get(key)
        if pattern is None:
            pattern = re.compile(re.escape(term), re.IGNORECASE)
            self._patterns[key] = pattern
            self.misses += 1
        else:
            self.hits += 1
        return pattern

    def clear(self) -> None:
        """Drop every matcher."""
        if self._patterns:
            logger.debug("Cleared regex cache", size=len(self._patterns))
        self._patterns.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, key: object) -> bool:
        return key in self._patterns
