"""CLI output formatting utilities."""

from collections import Counter

from rich.console import Console
from rich.table import Table
from rich.text import Text

from termbeacon.mappings import Mapping
from termbeacon.utils.highlighting import TermRole
from termbeacon.utils.text_processor import join_terms

console = Console()
err_console = Console(stderr=True)


def _swatch(color: str) -> Text:
    return Text(f"  {color}", style=f"on {color}" if color.startswith("#") else "")


def format_mappings_table(mappings: list[Mapping]) -> Table:
    """Format the mapping set as a Rich table."""
    table = Table(title=f"Mappings ({len(mappings)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Search terms", style="cyan")
    table.add_column("Search color")
    table.add_column("Highlight terms", style="green")
    table.add_column("Highlight color")

    for index, mapping in enumerate(mappings):
        table.add_row(
            str(index),
            join_terms(mapping.search_terms, "; "),
            _swatch(mapping.search_color),
            join_terms(mapping.mapped_terms, "; "),
            _swatch(mapping.mapped_color),
        )

    return table


def format_stats_table(mappings: list[Mapping], counts: Counter) -> Table:
    """Format marker counts per mapping and role."""
    table = Table(title=f"Highlights ({sum(counts.values())})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Search terms", style="cyan")
    table.add_column("Search hits", justify="right", style="yellow")
    table.add_column("Highlight hits", justify="right", style="yellow")

    for index, mapping in enumerate(mappings):
        table.add_row(
            str(index),
            join_terms(mapping.search_terms, "; "),
            str(counts.get((index, TermRole.SEARCH), 0)),
            str(counts.get((index, TermRole.MAPPED), 0)),
        )

    return table
