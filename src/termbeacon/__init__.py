"""TermBeacon: keyword-pair highlighting for live HTML documents."""

__version__ = "0.1.0"
