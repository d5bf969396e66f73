"""Incremental re-highlighting driven by document mutations."""

from typing import Callable, Optional

from bs4 import Tag
from bs4.element import PageElement

from termbeacon.dom.applier import DomApplier
from termbeacon.dom.document import LiveDocument, MutationRecord
from termbeacon.dom.markers import is_marker
from termbeacon.dom.walker import TextWalker
from termbeacon.engines.scheduler import ChunkedTask, IdleScheduler
from termbeacon.logging_config import get_logger
from termbeacon.utils.highlighting import TermEntry

logger = get_logger(__name__)


class ChangeWatcher:
    """Observes a LiveDocument and highlights only the subtrees that changed.

    Markers inserted by the highlighter show up in mutation batches too; they
    are dropped structurally (``is_marker``), never by timing.
    """

    def __init__(
        self,
        document: LiveDocument,
        scheduler: IdleScheduler,
        applier: DomApplier,
        terms: Callable[[], list[TermEntry]],
        walker: TextWalker | None = None,
        timeout_ms: float = 500.0,
    ) -> None:
        self.document = document
        self.scheduler = scheduler
        self.applier = applier
        self.walker = walker or applier.walker
        self._terms = terms
        self.timeout_ms = timeout_ms
        self._root: Optional[PageElement] = None
        self.batches_seen = 0
        self.passes_scheduled = 0

    @property
    def running(self) -> bool:
        return self._root is not None

    def start(self, root: PageElement | None = None) -> None:
        """Begin observing ``root`` (defaults to the document body)."""
        if self.running:
            self.stop()
        self._root = root if root is not None else self.document.body
        self.document.observe(self._on_mutations, self._root)
        logger.debug("Change watcher started")

    def stop(self) -> None:
        if not self.running:
            return
        self.document.disconnect(self._on_mutations)
        self._root = None
        logger.debug("Change watcher stopped")

    def affected_nodes(self, records: list[MutationRecord]) -> list[Tag]:
        """Elements to re-highlight for a batch, outermost only, in arrival order."""
        candidates: list[Tag] = []
        for record in records:
            if record.kind == "childList":
                candidates.extend(node for node in record.added_nodes if isinstance(node, Tag))
            elif record.kind == "characterData" and isinstance(record.target.parent, Tag):
                candidates.append(record.target.parent)

        unique: dict[int, Tag] = {}
        for node in candidates:
            if is_marker(node) or self.walker.in_skipped_context(node):
                continue
            unique.setdefault(id(node), node)

        return [node for node in unique.values() if not self._has_listed_ancestor(node, unique)]

    @staticmethod
    def _has_listed_ancestor(node: Tag, listed: dict[int, Tag]) -> bool:
        parent = node.parent
        while parent is not None:
            if id(parent) in listed:
                return True
            parent = parent.parent
        return False

    def _on_mutations(self, records: list[MutationRecord]) -> None:
        self.batches_seen += 1
        if not self._terms():
            return
        affected = self.affected_nodes(records)
        if not affected:
            return

        self.passes_scheduled += 1
        task = self.scheduler.run_chunked(
            affected,
            self._highlight_node,
            timeout_ms=self.timeout_ms,
            name="incremental",
        )
        task.add_done_callback(self._on_pass_done)

    def _highlight_node(self, node: Tag) -> None:
        self.applier.highlight_subtree(node, self._terms())

    @staticmethod
    def _on_pass_done(task: ChunkedTask) -> None:
        if task.failed:
            logger.warning(
                "Incremental highlight pass aborted",
                processed=task.processed,
                error=str(task.error),
            )
