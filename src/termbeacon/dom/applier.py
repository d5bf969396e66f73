"""Rewrites text nodes into highlight markers and back."""

from bs4 import NavigableString, Tag
from bs4.element import PageElement, PreformattedString

from termbeacon.dom.document import LiveDocument
from termbeacon.dom.markers import (
    GROUP_ATTRIBUTE,
    MARKER_CLASS,
    MARKER_TAG,
    is_marker,
    marker_classes,
    marker_style,
)
from termbeacon.dom.walker import TextWalker
from termbeacon.exceptions import DomApplyError
from termbeacon.logging_config import get_logger
from termbeacon.utils.highlighting import MatchedSpan, Segmenter, TermEntry, has_highlights

logger = get_logger(__name__)

# Set on text nodes the applier has swapped out. bs4 strings subclass str,
# which cannot be weakly referenced, so the flag lives on the node itself.
REPLACED_FLAG = "_termbeacon_replaced"


def was_replaced(node: PageElement) -> bool:
    """True for a text node detached by an earlier highlight of the same text."""
    return node.parent is None and getattr(node, REPLACED_FLAG, False)


class DomApplier:
    """Owns every change the highlighter makes to the document."""

    def __init__(
        self,
        document: LiveDocument,
        segmenter: Segmenter,
        walker: TextWalker | None = None,
    ) -> None:
        self.document = document
        self.segmenter = segmenter
        self.walker = walker or TextWalker()

    def build_marker(self, span: MatchedSpan) -> Tag:
        entry = span.entry
        if entry is None:
            raise DomApplyError("Cannot build a marker for a plain span")
        return self.document.new_tag(
            MARKER_TAG,
            attrs={
                "class": marker_classes(entry.role.value, entry.group),
                GROUP_ATTRIBUTE: str(entry.group),
                "style": marker_style(entry.color),
            },
            text=span.text,
        )

    def apply(self, text_node: NavigableString, spans: list[MatchedSpan]) -> int:
        """Replace ``text_node`` with plain strings and markers.

        Nothing happens when no span is highlighted. Returns the number of
        markers created.
        """
        if not has_highlights(spans):
            return 0
        if text_node.parent is None:
            raise DomApplyError(
                "Text node was removed before it could be highlighted",
                details=str(text_node)[:80],
            )

        fragment: list[PageElement] = [
            self.build_marker(span) if span.highlighted else self.document.new_string(span.text)
            for span in spans
        ]
        self.document.replace_with(text_node, fragment)
        setattr(text_node, REPLACED_FLAG, True)
        return sum(1 for span in spans if span.highlighted)

    def highlight_text_node(self, text_node: NavigableString, entries: list[TermEntry]) -> int:
        """Segment one text node and apply the result.

        Nodes this applier already replaced are skipped: their text lives on
        in the markers and strings that took their place. Nodes detached by
        anyone else still raise DomApplyError.
        """
        if was_replaced(text_node):
            logger.debug("Skipped text node already highlighted", text=str(text_node)[:40])
            return 0
        if is_marker(text_node.parent):
            return 0
        spans = self.segmenter.segment(str(text_node), entries)
        return self.apply(text_node, spans)

    def highlight_subtree(self, root: PageElement, entries: list[TermEntry]) -> int:
        """Highlight every eligible text node under ``root``."""
        if not entries:
            return 0
        created = 0
        for text_node in self.walker.collect(root):
            created += self.highlight_text_node(text_node, entries)
        return created

    def revert_all(self, root: Tag | None = None) -> int:
        """Collapse every marker under ``root`` back into plain text.

        Text split apart by highlighting is merged back together so later
        passes can match terms that span former marker boundaries.
        """
        root = root if root is not None else self.document.body
        markers = root.find_all(MARKER_TAG, class_=MARKER_CLASS)
        touched: list[Tag] = []
        for marker in markers:
            parent = marker.parent
            if parent is None:
                continue
            self.document.unwrap(marker)
            if not any(p is parent for p in touched):
                touched.append(parent)

        for parent in touched:
            self._merge_adjacent_text(parent)

        if markers:
            logger.debug("Reverted highlights", markers=len(markers))
        return len(markers)

    def _merge_adjacent_text(self, parent: Tag) -> None:
        run: list[NavigableString] = []
        for child in list(parent.contents) + [None]:
            if (
                isinstance(child, NavigableString)
                and not isinstance(child, PreformattedString)
            ):
                run.append(child)
                continue
            if len(run) > 1:
                merged = self.document.new_string("".join(str(node) for node in run))
                self.document.replace_with(run[0], [merged])
                for node in run[1:]:
                    self.document.remove(node)
            run = []
