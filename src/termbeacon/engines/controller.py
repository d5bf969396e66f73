"""Engine controller: owns the mapping set and orchestrates highlight passes."""

from collections import Counter
from enum import Enum
from typing import Any, Iterable, Optional

from bs4 import NavigableString

from termbeacon.config import Config
from termbeacon.dom.applier import DomApplier
from termbeacon.dom.document import LiveDocument
from termbeacon.dom.markers import GROUP_ATTRIBUTE, MARKER_CLASS, MARKER_TAG
from termbeacon.dom.walker import TextWalker
from termbeacon.engines.base import BaseEngine
from termbeacon.engines.scheduler import ChunkedTask, IdleScheduler
from termbeacon.engines.watcher import ChangeWatcher
from termbeacon.logging_config import get_logger
from termbeacon.mappings import Mapping, mappings_from_message, normalize_mappings
from termbeacon.utils.cache import RegexCache
from termbeacon.utils.highlighting import MatchPolicy, Segmenter, TermEntry, TermRole, build_term_index

logger = get_logger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    HIGHLIGHTING = "highlighting"


class EngineController(BaseEngine):
    """Single owner of the engine state for one document.

    Mapping updates replace the whole set: existing markers are reverted, the
    term index and matcher cache are rebuilt, and one chunked full pass is
    scheduled. The newest update always wins; an older pass still in flight
    is cancelled at its next chunk boundary. Document mutations are handled
    by the ChangeWatcher as independent incremental passes.

    Methods that schedule work must be called from inside a running event
    loop; :meth:`highlight_now` is the synchronous alternative.
    """

    def __init__(
        self,
        document: LiveDocument,
        config: Config | None = None,
        scheduler: IdleScheduler | None = None,
    ) -> None:
        self.config = config or Config()
        self.document = document
        self.scheduler = scheduler or IdleScheduler.from_config(self.config.engine)

        self._cache = RegexCache()
        self._segmenter = Segmenter(self._cache, MatchPolicy(self.config.engine.match_policy))
        self._walker = TextWalker()
        self._applier = DomApplier(document, self._segmenter, self._walker)
        self._watcher = ChangeWatcher(
            document,
            self.scheduler,
            self._applier,
            terms=lambda: self._terms,
            walker=self._walker,
            timeout_ms=self.config.engine.mutation_timeout_ms,
        )

        self._mappings: tuple[Mapping, ...] = ()
        self._terms: list[TermEntry] = []
        self._state = EngineState.IDLE
        self._generation = 0
        self._full_pass: Optional[ChunkedTask] = None
        self._markers_created = 0

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def mappings(self) -> tuple[Mapping, ...]:
        return self._mappings

    @property
    def terms(self) -> list[TermEntry]:
        return list(self._terms)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def cache(self) -> RegexCache:
        return self._cache

    @property
    def watcher(self) -> ChangeWatcher:
        return self._watcher

    @property
    def full_pass(self) -> Optional[ChunkedTask]:
        return self._full_pass

    def start(self, mappings: Iterable[Any] = ()) -> None:
        """Install the change watcher and apply the initial mapping set."""
        self._watcher.start(self.document.body)
        initial = normalize_mappings(
            list(mappings), self.config.colors.search, self.config.colors.mapped
        )
        if initial:
            self.update_mappings(initial)
        logger.info("Engine started", mappings=len(initial))

    def shutdown(self) -> None:
        """Stop observing and cancel every pass in flight."""
        self._watcher.stop()
        self.scheduler.cancel_all()
        self._full_pass = None
        self._state = EngineState.IDLE
        logger.info("Engine stopped", generation=self._generation)

    def process(self, message: Any) -> EngineState:
        return self.handle_message(message)

    def handle_message(self, message: Any) -> EngineState:
        """Apply an update notification; malformed payloads mean an empty set."""
        colors = self.config.colors
        return self.update_mappings(mappings_from_message(message, colors.search, colors.mapped))

    def update_mappings(self, mappings: Iterable[Any]) -> EngineState:
        """Replace the mapping set and re-highlight the whole document."""
        new_set = tuple(
            normalize_mappings(list(mappings), self.config.colors.search, self.config.colors.mapped)
        )

        if self._state is EngineState.HIGHLIGHTING and self._full_pass is not None:
            self._full_pass.cancel()
            logger.debug("Superseded highlight pass", generation=self._generation)
        self._full_pass = None

        self._generation += 1
        self._mappings = new_set
        self._cache.clear()
        self._applier.revert_all(self.document.body)

        if not new_set:
            self._terms = []
            self._state = EngineState.IDLE
            logger.info("Mappings cleared", generation=self._generation)
            return self._state

        self._terms = build_term_index(new_set)
        self._state = EngineState.HIGHLIGHTING
        self._markers_created = 0
        task = self.scheduler.run_chunked(
            lambda: self._walker.collect(self.document.body),
            self._highlight_text_node,
            timeout_ms=self.config.engine.full_pass_timeout_ms,
            name=f"full-pass-{self._generation}",
        )
        self._full_pass = task
        task.add_done_callback(self._on_full_pass_done)
        logger.info(
            "Mappings updated",
            generation=self._generation,
            mappings=len(new_set),
            terms=len(self._terms),
        )
        return self._state

    def highlight_now(self) -> int:
        """Run a complete full pass synchronously; returns markers created.

        Failures are logged and leave the already highlighted prefix in place.
        """
        if not self._terms:
            return 0
        created = 0
        try:
            for text_node in self._walker.collect(self.document.body):
                created += self._applier.highlight_text_node(text_node, self._terms)
        except Exception as e:
            logger.error("Highlight pass aborted", generation=self._generation, error=str(e))
        return created

    def revert(self) -> int:
        """Remove every marker from the document without touching the mappings."""
        return self._applier.revert_all(self.document.body)

    def stats(self) -> Counter:
        """Marker count per (group, role) currently in the document."""
        counts: Counter = Counter()
        for marker in self.document.body.find_all(MARKER_TAG, class_=MARKER_CLASS):
            classes = marker.get("class") or []
            role = TermRole.SEARCH if TermRole.SEARCH.value in classes else TermRole.MAPPED
            counts[(int(marker.get(GROUP_ATTRIBUTE, -1)), role)] += 1
        return counts

    def _highlight_text_node(self, text_node: NavigableString) -> None:
        self._markers_created += self._applier.highlight_text_node(text_node, self._terms)

    def _on_full_pass_done(self, task: ChunkedTask) -> None:
        if task is not self._full_pass:
            return
        self._full_pass = None
        self._state = EngineState.IDLE

        if task.failed:
            logger.error(
                "Highlight pass aborted",
                generation=self._generation,
                processed=task.processed,
                error=str(task.error),
            )
        elif not task.cancelled:
            logger.info(
                "Highlight pass completed",
                generation=self._generation,
                text_nodes=task.processed,
                markers=self._markers_created,
                chunks=task.chunks,
            )
