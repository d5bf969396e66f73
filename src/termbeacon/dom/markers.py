"""Constants and predicates describing highlight markers in the document."""

from bs4 import Tag
from bs4.element import PageElement

MARKER_TAG = "span"
MARKER_CLASS = "multi-find-highlight"
GROUP_ATTRIBUTE = "data-group"
OPT_OUT_ATTRIBUTE = "data-multi-find-ignore"

EXCLUDED_TAGS = frozenset(
    {"script", "style", "noscript", "iframe", "object", "svg", "canvas"}
)

# Typography is inherited so markers never change the surrounding layout.
INHERITED_PROPERTIES = ("font-family", "font-size", "line-height", "letter-spacing")


def is_marker(node: PageElement | None) -> bool:
    """True for elements produced by the highlighter."""
    return isinstance(node, Tag) and MARKER_CLASS in (node.get("class") or ())


def marker_classes(role: str, group: int) -> list[str]:
    return [MARKER_CLASS, role, f"group-{group}"]


def marker_style(color: str) -> str:
    """Inline style for a marker of the given color."""
    declarations = [
        f"background-color: {color}",
        f"box-shadow: 0 0 0 1px {color}",
    ]
    declarations.extend(f"{prop}: inherit" for prop in INHERITED_PROPERTIES)
    return "; ".join(declarations)
