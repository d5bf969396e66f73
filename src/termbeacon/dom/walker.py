"""Depth-first enumeration of highlightable text nodes."""

from typing import Callable, Iterable

from bs4 import NavigableString, Tag
from bs4.element import PageElement, PreformattedString

from termbeacon.dom.markers import EXCLUDED_TAGS, OPT_OUT_ATTRIBUTE, is_marker
from termbeacon.utils.text_processor import is_blank

TextVisitor = Callable[[NavigableString], None]


class TextWalker:
    """Visits eligible text leaves under a subtree in document order.

    Skipped: comments and other non-content strings, highlight markers,
    non-content elements (scripts, styles, embedded objects), elements
    carrying the opt-out attribute, and whitespace-only text.
    """

    def __init__(
        self,
        excluded_tags: Iterable[str] = EXCLUDED_TAGS,
        opt_out_attribute: str = OPT_OUT_ATTRIBUTE,
    ) -> None:
        self.excluded_tags = frozenset(tag.lower() for tag in excluded_tags)
        self.opt_out_attribute = opt_out_attribute

    def is_skipped_element(self, tag: Tag) -> bool:
        return (
            is_marker(tag)
            or (tag.name or "").lower() in self.excluded_tags
            or tag.has_attr(self.opt_out_attribute)
        )

    def in_skipped_context(self, node: PageElement) -> bool:
        """True when an ancestor of ``node`` keeps it out of highlighting."""
        parent = node.parent
        while parent is not None:
            if self.is_skipped_element(parent):
                return True
            parent = parent.parent
        return False

    @staticmethod
    def is_text_leaf(node: PageElement) -> bool:
        return (
            isinstance(node, NavigableString)
            and not isinstance(node, PreformattedString)
            and not is_blank(node)
        )

    def walk(self, node: PageElement, visit: TextVisitor) -> None:
        """Call ``visit`` for every eligible text leaf under ``node``.

        The next sibling is read before descending, so ``visit`` may replace
        the node it receives.
        """
        if isinstance(node, NavigableString):
            if self.is_text_leaf(node):
                visit(node)
            return
        if not isinstance(node, Tag) or self.is_skipped_element(node):
            return

        child = node.contents[0] if node.contents else None
        while child is not None:
            next_child = child.next_sibling
            self.walk(child, visit)
            child = next_child

    def collect(self, node: PageElement) -> list[NavigableString]:
        """Snapshot of the eligible text leaves under ``node``."""
        found: list[NavigableString] = []
        self.walk(node, found.append)
        return found
