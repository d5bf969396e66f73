"""termbeacon command-line entry point."""

import argparse
import asyncio
import sys
from collections import Counter
from pathlib import Path
from typing import Callable, Optional

from termbeacon.cli.formatters import console, err_console, format_mappings_table, format_stats_table
from termbeacon.config import Config
from termbeacon.database import MappingStore, close_database, initialize_database
from termbeacon.dom.document import LiveDocument
from termbeacon.engines.controller import EngineController
from termbeacon.exceptions import TermBeaconError, ValidationError
from termbeacon.logging_config import configure_logging, get_logger
from termbeacon.mappings import Mapping, export_mappings, import_mappings
from termbeacon.utils.text_processor import parse_terms
from termbeacon.utils.validators import validate_color, validate_text_file

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termbeacon",
        description="Highlight keyword pairs in HTML documents.",
    )
    parser.add_argument("--config", type=Path, help="Path to a config.toml file")
    parser.add_argument("--db", type=Path, help="Override the mapping database path")
    sub = parser.add_subparsers(dest="command", required=True)

    highlight = sub.add_parser("highlight", help="Highlight an HTML file")
    highlight.add_argument("input", type=Path)
    highlight.add_argument("-o", "--output", type=Path, help="Write result here instead of stdout")
    highlight.add_argument("--mappings", type=Path, help="Use an export file instead of the store")
    highlight.add_argument("--parser", default="html.parser", help="BeautifulSoup parser name")

    sub.add_parser("list", help="Show stored mappings")

    add = sub.add_parser("add", help="Add a mapping")
    _add_mapping_arguments(add)

    update = sub.add_parser("update", help="Replace the mapping at INDEX")
    update.add_argument("index", type=int)
    _add_mapping_arguments(update)

    delete = sub.add_parser("delete", help="Delete the mapping at INDEX")
    delete.add_argument("index", type=int)

    sub.add_parser("clear", help="Delete every mapping")

    export = sub.add_parser("export", help="Export mappings to a JSON file")
    export.add_argument("path", type=Path)

    import_ = sub.add_parser("import", help="Replace mappings with an export file")
    import_.add_argument("path", type=Path)

    return parser


def _add_mapping_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("search", help="Search terms separated by ';'")
    parser.add_argument("mapped", help="Highlight terms separated by ';'")
    parser.add_argument("--search-color", default=None)
    parser.add_argument("--mapped-color", default=None)


def mapping_from_args(args: argparse.Namespace, config: Config) -> Mapping:
    search_terms = parse_terms(args.search)
    if not search_terms:
        raise ValidationError("Search terms cannot be empty", details="Separate terms with ';'")
    mapped_terms = parse_terms(args.mapped)
    if not mapped_terms:
        raise ValidationError("Highlight terms cannot be empty", details="Separate terms with ';'")
    return Mapping(
        search_terms=search_terms,
        mapped_terms=mapped_terms,
        search_color=validate_color(args.search_color or config.colors.search),
        mapped_color=validate_color(args.mapped_color or config.colors.mapped),
    )


async def highlight_document(
    document: LiveDocument, mappings: list[Mapping], config: Config
) -> Counter:
    """Run one full pass to completion and return marker counts."""
    engine = EngineController(document, config)
    engine.start(mappings)
    await engine.scheduler.drain()
    counts = engine.stats()
    engine.shutdown()
    return counts


def cmd_highlight(args: argparse.Namespace, config: Config, store: Callable[[], MappingStore]) -> int:
    html = validate_text_file(args.input, max_size=100 * 1024 * 1024)
    mappings = import_mappings(args.mappings) if args.mappings else store().load()
    if not mappings:
        err_console.print("[yellow]No mappings defined; document left unchanged.[/yellow]")

    document = LiveDocument.parse(html, args.parser)
    counts = asyncio.run(highlight_document(document, mappings, config))

    if args.output:
        args.output.write_text(document.render(), encoding="utf-8")
        console.print(format_stats_table(mappings, counts))
    else:
        sys.stdout.write(document.render())
        err_console.print(format_stats_table(mappings, counts))
    return 0


def cmd_list(args: argparse.Namespace, config: Config, store: Callable[[], MappingStore]) -> int:
    console.print(format_mappings_table(store().load()))
    return 0


def cmd_add(args: argparse.Namespace, config: Config, store: Callable[[], MappingStore]) -> int:
    mappings = store().add(mapping_from_args(args, config))
    console.print(f"[green]Mapping added[/green] ({len(mappings)} total)")
    return 0


def cmd_update(args: argparse.Namespace, config: Config, store: Callable[[], MappingStore]) -> int:
    store().update(args.index, mapping_from_args(args, config))
    console.print(f"[green]Mapping {args.index} updated[/green]")
    return 0


def cmd_delete(args: argparse.Namespace, config: Config, store: Callable[[], MappingStore]) -> int:
    mappings = store().delete(args.index)
    console.print(f"[green]Mapping {args.index} deleted[/green] ({len(mappings)} left)")
    return 0


def cmd_clear(args: argparse.Namespace, config: Config, store: Callable[[], MappingStore]) -> int:
    store().clear()
    console.print("[green]All mappings cleared[/green]")
    return 0


def cmd_export(args: argparse.Namespace, config: Config, store: Callable[[], MappingStore]) -> int:
    path = export_mappings(store().load(), args.path)
    console.print(f"[green]Exported to[/green] {path}")
    return 0


def cmd_import(args: argparse.Namespace, config: Config, store: Callable[[], MappingStore]) -> int:
    mappings = import_mappings(args.path)
    store().save(mappings)
    console.print(f"[green]Imported {len(mappings)} mapping(s)[/green]")
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, Config, Callable[[], MappingStore]], int]] = {
    "highlight": cmd_highlight,
    "list": cmd_list,
    "add": cmd_add,
    "update": cmd_update,
    "delete": cmd_delete,
    "clear": cmd_clear,
    "export": cmd_export,
    "import": cmd_import,
}


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = Config.load(args.config)
        if args.db:
            config.database.path = str(args.db)
        configure_logging(config)

        opened = False

        def store() -> MappingStore:
            nonlocal opened
            if not opened:
                initialize_database(config)
                opened = True
            return MappingStore(config.colors)

        try:
            return COMMANDS[args.command](args, config, store)
        finally:
            if opened:
                close_database()
    except TermBeaconError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        logger.debug("Command failed", command=args.command, error=e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
