"""Term index construction and text segmentation for highlighting."""

from bisect import bisect_right
from enum import Enum
from typing import Iterable, NamedTuple, Optional

from termbeacon.mappings import Mapping
from termbeacon.utils.cache import RegexCache


class TermRole(str, Enum):
    """Which side of a mapping a term comes from. Values double as CSS classes."""

    SEARCH = "search-term"
    MAPPED = "mapped-term"


class MatchPolicy(str, Enum):
    """How overlapping candidates are arbitrated.

    ``TERM_MAJOR`` visits terms longest first and accepts every occurrence
    that does not overlap an accepted one. ``SINGLE_CURSOR`` shares one forward
    cursor across all terms: once a term is accepted, nothing before its end
    can match, even for terms visited later.
    """

    TERM_MAJOR = "term_major"
    SINGLE_CURSOR = "single_cursor"


class TermEntry(NamedTuple):
    """A single literal term used as a matching unit."""

    term: str
    role: TermRole
    group: int
    color: str
    length: int


class MatchedSpan(NamedTuple):
    """A contiguous run of a text unit, plain when ``entry`` is None."""

    start: int
    end: int
    text: str
    entry: Optional[TermEntry] = None

    @property
    def highlighted(self) -> bool:
        return self.entry is not None

    @property
    def role(self) -> Optional[TermRole]:
        return self.entry.role if self.entry else None

    @property
    def group(self) -> Optional[int]:
        return self.entry.group if self.entry else None

    @property
    def color(self) -> Optional[str]:
        return self.entry.color if self.entry else None


def build_term_index(mappings: Iterable[Mapping]) -> list[TermEntry]:
    """Flatten a mapping set into term entries, longest first.

    Entries are emitted per mapping (search terms, then mapped terms, each in
    display order) and stably sorted by length, so ties keep emission order.
    """
    entries: list[TermEntry] = []
    for group, mapping in enumerate(mappings):
        for term in mapping.search_terms:
            if term:
                entries.append(
                    TermEntry(term, TermRole.SEARCH, group, mapping.search_color, len(term))
                )
        for term in mapping.mapped_terms:
            if term:
                entries.append(
                    TermEntry(term, TermRole.MAPPED, group, mapping.mapped_color, len(term))
                )

    entries.sort(key=lambda entry: -entry.length)
    return entries


class Segmenter:
    """Splits a text unit into plain and highlighted spans."""

    def __init__(
        self,
        cache: RegexCache | None = None,
        policy: MatchPolicy = MatchPolicy.TERM_MAJOR,
    ) -> None:
        self.cache = cache if cache is not None else RegexCache()
        self.policy = MatchPolicy(policy)

    def segment(self, text: str, entries: list[TermEntry]) -> list[MatchedSpan]:
        """Return spans whose concatenated text equals ``text``."""
        if not text:
            return []
        if self.policy is MatchPolicy.SINGLE_CURSOR:
            return self._segment_single_cursor(text, entries)
        return self._segment_term_major(text, entries)

    def _segment_term_major(self, text: str, entries: list[TermEntry]) -> list[MatchedSpan]:
        starts: list[int] = []
        ends: list[int] = []
        owners: list[TermEntry] = []

        for entry in entries:
            pattern = self.cache.get(entry.group, entry.term, entry.role.value)
            pos = 0
            while True:
                match = pattern.search(text, pos)
                if match is None:
                    break
                start, end = match.span()
                i = bisect_right(starts, start)
                # Overlap with the accepted range on the left or on the right.
                if (i > 0 and ends[i - 1] > start) or (i < len(starts) and starts[i] < end):
                    pos = start + 1
                    continue
                starts.insert(i, start)
                ends.insert(i, end)
                owners.insert(i, entry)
                pos = end

        spans: list[MatchedSpan] = []
        cursor = 0
        for start, end, entry in zip(starts, ends, owners):
            if start > cursor:
                spans.append(MatchedSpan(cursor, start, text[cursor:start]))
            spans.append(MatchedSpan(start, end, text[start:end], entry))
            cursor = end
        if cursor < len(text):
            spans.append(MatchedSpan(cursor, len(text), text[cursor:]))
        return spans

    def _segment_single_cursor(self, text: str, entries: list[TermEntry]) -> list[MatchedSpan]:
        spans: list[MatchedSpan] = []
        last_index = 0

        for entry in entries:
            if last_index >= len(text):
                break
            pattern = self.cache.get(entry.group, entry.term, entry.role.value)
            match = pattern.search(text, last_index)
            while match is not None:
                start, end = match.span()
                if start > last_index:
                    spans.append(MatchedSpan(last_index, start, text[last_index:start]))
                spans.append(MatchedSpan(start, end, text[start:end], entry))
                last_index = end
                match = pattern.search(text, last_index)

        if last_index < len(text):
            spans.append(MatchedSpan(last_index, len(text), text[last_index:]))
        return spans


def has_highlights(spans: Iterable[MatchedSpan]) -> bool:
    """True when at least one span is highlighted."""
    return any(span.highlighted for span in spans)
