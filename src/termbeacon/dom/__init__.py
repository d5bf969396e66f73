"""Live document model, traversal and marker rewriting."""

from termbeacon.dom.applier import DomApplier
from termbeacon.dom.document import LiveDocument, MutationRecord
from termbeacon.dom.walker import TextWalker

__all__ = ["DomApplier", "LiveDocument", "MutationRecord", "TextWalker"]
