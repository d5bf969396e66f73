"""A BeautifulSoup tree that reports its own mutations in batches."""

import asyncio
from typing import Callable, Iterable, Literal, NamedTuple, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement

from termbeacon.exceptions import DomApplyError
from termbeacon.logging_config import get_logger

logger = get_logger(__name__)

MutationKind = Literal["childList", "characterData"]


class MutationRecord(NamedTuple):
    """One observed change.

    For ``childList`` the target is the parent whose children changed; for
    ``characterData`` it is the text node that now holds the new value.
    """

    kind: MutationKind
    target: PageElement
    added_nodes: tuple[PageElement, ...] = ()


MutationCallback = Callable[[list[MutationRecord]], None]


def is_within(node: PageElement | None, root: PageElement) -> bool:
    """True when ``node`` is ``root`` or one of its descendants."""
    while node is not None:
        if node is root:
            return True
        node = node.parent
    return False


class LiveDocument:
    """Mutation surface over a parsed HTML document.

    Every change made through this class is queued as a MutationRecord and
    delivered to observers as one batch on :meth:`flush`. Inside a running
    event loop the first queued record schedules the flush automatically, so
    synchronous bursts of changes arrive together.
    """

    def __init__(self, soup: BeautifulSoup) -> None:
        self.soup = soup
        self._observers: list[tuple[MutationCallback, Optional[PageElement]]] = []
        self._pending: list[MutationRecord] = []
        self._flush_scheduled = False

    @classmethod
    def parse(cls, html: str, parser: str = "html.parser") -> "LiveDocument":
        return cls(BeautifulSoup(html, parser))

    @property
    def body(self) -> Tag:
        """The ``<body>`` element, or the whole tree for fragments."""
        return self.soup.body or self.soup

    def render(self) -> str:
        return str(self.soup)

    def text(self, root: Tag | None = None) -> str:
        """Concatenated text content of ``root`` (defaults to the body)."""
        return (root or self.body).get_text()

    # Node factories

    def new_tag(self, name: str, attrs: dict | None = None, text: str | None = None) -> Tag:
        tag = self.soup.new_tag(name, attrs=attrs or {})
        if text is not None:
            tag.append(self.soup.new_string(text))
        return tag

    def new_string(self, text: str) -> NavigableString:
        return self.soup.new_string(text)

    # Observation

    def observe(self, callback: MutationCallback, root: PageElement | None = None) -> None:
        """Register a callback for batches of records under ``root``."""
        self._observers.append((callback, root))

    def disconnect(self, callback: MutationCallback) -> None:
        # Bound methods are recreated on each access, so compare by equality.
        self._observers = [(cb, root) for cb, root in self._observers if cb != callback]

    @property
    def pending(self) -> int:
        return len(self._pending)

    def flush(self) -> None:
        """Deliver queued records to every observer."""
        self._flush_scheduled = False
        if not self._pending:
            return
        batch, self._pending = self._pending, []

        for callback, root in list(self._observers):
            records = batch if root is None else [r for r in batch if is_within(r.target, root)]
            if not records:
                continue
            try:
                callback(records)
            except Exception:
                logger.exception("Mutation observer failed", records=len(records))

    def _record(self, kind: MutationKind, target: PageElement, added: Iterable[PageElement] = ()) -> None:
        if not self._observers:
            return
        self._pending.append(MutationRecord(kind, target, tuple(added)))
        if self._flush_scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.call_soon(self.flush)
        self._flush_scheduled = True

    # Mutations

    def append(self, parent: Tag, node: PageElement) -> PageElement:
        parent.append(node)
        self._record("childList", parent, (node,))
        return node

    def insert_before(self, reference: PageElement, node: PageElement) -> PageElement:
        parent = self._require_parent(reference)
        reference.insert_before(node)
        self._record("childList", parent, (node,))
        return node

    def set_text(self, text_node: NavigableString, value: str) -> NavigableString:
        """Change the value of a text node.

        bs4 strings are immutable, so the node is swapped for a new one; the
        returned node is the live one afterwards.
        """
        self._require_parent(text_node)
        new_node = self.soup.new_string(value)
        text_node.replace_with(new_node)
        self._record("characterData", new_node)
        return new_node

    def remove(self, node: PageElement) -> PageElement:
        parent = self._require_parent(node)
        node.extract()
        self._record("childList", parent)
        return node

    def replace_with(self, node: PageElement, replacements: list[PageElement]) -> None:
        """Replace ``node`` with the given nodes, in order."""
        parent = self._require_parent(node)
        node.replace_with(*replacements)
        self._record("childList", parent, replacements)

    def unwrap(self, tag: Tag) -> list[PageElement]:
        """Splice the children of ``tag`` into its parent in its place."""
        parent = self._require_parent(tag)
        children = list(tag.contents)
        tag.unwrap()
        self._record("childList", parent, children)
        return children

    @staticmethod
    def _require_parent(node: PageElement) -> Tag:
        if node.parent is None:
            raise DomApplyError(
                "Node is not attached to the document",
                details=repr(node)[:80],
            )
        return node.parent
