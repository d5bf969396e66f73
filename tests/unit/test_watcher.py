"""Unit tests for mutation-driven incremental highlighting."""

import asyncio

from bs4 import Tag

from termbeacon.dom.applier import DomApplier
from termbeacon.dom.document import LiveDocument, MutationRecord
from termbeacon.dom.markers import MARKER_CLASS
from termbeacon.engines.scheduler import IdleScheduler
from termbeacon.engines.watcher import ChangeWatcher
from termbeacon.mappings import Mapping
from termbeacon.utils.highlighting import Segmenter, TermEntry, build_term_index

HTML = (
    "<body><p id='old'>an old cat</p><div id='host'></div>"
    "<div id='quiet' data-multi-find-ignore></div></body>"
)


class Harness:
    """Document, applier and watcher wired together inside a running loop."""

    def __init__(self, terms: list[TermEntry]) -> None:
        self.document = LiveDocument.parse(HTML)
        self.scheduler = IdleScheduler()
        self.applier = DomApplier(self.document, Segmenter())
        self.terms = terms
        self.watcher = ChangeWatcher(self.document, self.scheduler, self.applier, lambda: self.terms)
        self.visited: list[Tag] = []
        highlight_subtree = self.applier.highlight_subtree

        def recording(root, entries):
            self.visited.append(root)
            return highlight_subtree(root, entries)

        self.applier.highlight_subtree = recording

    def markers(self, root: Tag | None = None) -> list[str]:
        root = root or self.document.body
        return [m.get_text() for m in root.find_all(class_=MARKER_CLASS)]


def cat_terms() -> list[TermEntry]:
    return build_term_index([Mapping(("cat",), ("dog",))])


def test_added_element_is_highlighted_alone() -> None:
    """Only the inserted subtree is visited; existing text is left alone."""

    async def run() -> Harness:
        h = Harness(cat_terms())
        h.watcher.start()
        new = h.document.new_tag("p", text="a new cat and dog")
        h.document.append(h.document.body.find(id="host"), new)
        await h.scheduler.drain()
        return h

    h = asyncio.run(run())

    host = h.document.body.find(id="host")
    assert h.markers(host) == ["cat", "dog"]
    assert h.markers(h.document.body.find(id="old")) == []
    assert [node.name for node in h.visited] == ["p"]
    assert h.watcher.passes_scheduled == 1


def test_text_change_rehighlights_parent() -> None:
    """A characterData change re-highlights the text's parent element."""

    async def run() -> Harness:
        h = Harness(cat_terms())
        h.watcher.start()
        old = h.document.body.find(id="old")
        h.document.set_text(old.string, "now a dog")
        await h.scheduler.drain()
        return h

    h = asyncio.run(run())

    assert h.markers() == ["dog"]
    assert [node.get("id") for node in h.visited] == ["old"]


def test_own_markers_do_not_feed_back() -> None:
    """Mutations made by the applier schedule no further passes."""

    async def run() -> Harness:
        h = Harness(cat_terms())
        h.watcher.start()
        h.applier.highlight_subtree(h.document.body, h.terms)
        h.visited.clear()
        await h.scheduler.drain()
        return h

    h = asyncio.run(run())

    assert h.markers() == ["cat"]
    assert h.watcher.batches_seen == 1
    assert h.watcher.passes_scheduled == 0
    assert h.visited == []


def test_empty_mapping_set_ignores_mutations() -> None:
    """No terms means no incremental pass."""

    async def run() -> Harness:
        h = Harness([])
        h.watcher.start()
        h.document.append(h.document.body, h.document.new_tag("p", text="cat"))
        await h.scheduler.drain()
        return h

    h = asyncio.run(run())

    assert h.markers() == []
    assert h.watcher.passes_scheduled == 0


def test_opt_out_region_is_never_mutated() -> None:
    """Elements added inside an opt-out block stay plain."""

    async def run() -> Harness:
        h = Harness(cat_terms())
        h.watcher.start()
        quiet = h.document.body.find(id="quiet")
        h.document.append(quiet, h.document.new_tag("p", text="cat"))
        await h.scheduler.drain()
        return h

    h = asyncio.run(run())

    assert h.markers() == []
    assert h.watcher.passes_scheduled == 0


def test_stop_disconnects() -> None:
    """A stopped watcher no longer reacts."""

    async def run() -> Harness:
        h = Harness(cat_terms())
        h.watcher.start()
        h.watcher.stop()
        h.document.append(h.document.body, h.document.new_tag("p", text="cat"))
        await h.scheduler.drain()
        return h

    h = asyncio.run(run())

    assert not h.watcher.running
    assert h.markers() == []


def test_affected_nodes_keeps_outermost_only() -> None:
    """Nested additions collapse into their outermost element."""
    h = Harness(cat_terms())
    outer = h.document.new_tag("section")
    inner = h.document.new_tag("p", text="cat")
    outer.append(inner)
    h.document.body.append(outer)
    records = [
        MutationRecord("childList", h.document.body, (outer,)),
        MutationRecord("childList", outer, (inner, h.document.new_string("text"))),
        MutationRecord("childList", h.document.body, (outer,)),
    ]

    assert h.watcher.affected_nodes(records) == [outer]
