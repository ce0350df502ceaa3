"""Main module for the poflow command line interface."""
import argparse
import contextlib
import sys
from pathlib import Path
from typing import IO, Callable, ContextManager, Iterable

from rich.console import Console
from rich.markup import escape

from poflow.catalog.formatter import format_entry
from poflow.catalog.parser import CatalogParser, open_catalog
from poflow.catalog.translations import parse_translations
from poflow.domain.entry import MsgEntry
from poflow.exceptions import (
    CatalogReadError,
    ConfigError,
    PoflowError,
    UnmatchedTranslationsError,
)
from poflow.infrastructure.config import Config
from poflow.output import entry_to_json, format_entry_summary
from poflow.services import (
    EntryFilter,
    MergeOptions,
    MergeService,
    RenameOptions,
    RenameService,
    SearchField,
    list_untranslated,
    search,
)

__version__ = "0.1.0"
COMMIT = "unknown"


def _add_global_arguments(parser: argparse.ArgumentParser, suppress: bool) -> None:
    """Add the flags accepted before and after the command name.

    On sub-command parsers the defaults are suppressed so that a flag given
    before the command name is not reset.
    """
    parser.add_argument(
        "--config",
        help="Config file (default: ./poflow.yml or ~/.config/poflow/config.yml)",
        type=Path,
        default=argparse.SUPPRESS if suppress else None,
    )
    for flag, help_text in (
        ("--json", "Output in JSON format"),
        ("--quiet", "Suppress progress output"),
    ):
        parser.add_argument(
            flag,
            help=help_text,
            action="store_true",
            default=argparse.SUPPRESS if suppress else False,
        )


def _add_search_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("pattern", help="Text or regex to look for")
    parser.add_argument("file", help="Catalog file (default: stdin)", type=Path, nargs="?")
    parser.add_argument("--re", help="Use regex pattern matching", action="store_true")
    parser.add_argument(
        "--limit",
        help="Maximum number of entries to output (0 = no limit)",
        type=int,
        default=0,
    )
    parser.add_argument(
        "--language", help="Language code (uses config to resolve path)"
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.
    """
    parser = argparse.ArgumentParser(
        prog="poflow", description="A workflow utility for GNU gettext .po files"
    )
    _add_global_arguments(parser, suppress=False)
    global_arguments = argparse.ArgumentParser(add_help=False)
    _add_global_arguments(global_arguments, suppress=True)

    sub_parser = parser.add_subparsers(dest="command")

    search_parser = sub_parser.add_parser(
        "search",
        help="Search for entries by msgid pattern",
        parents=[global_arguments],
    )
    _add_search_arguments(search_parser)

    searchvalue_parser = sub_parser.add_parser(
        "searchvalue",
        help="Search for entries by msgstr pattern",
        parents=[global_arguments],
    )
    _add_search_arguments(searchvalue_parser)

    listempty_parser = sub_parser.add_parser(
        "listempty", help="List untranslated entries", parents=[global_arguments]
    )
    listempty_parser.add_argument(
        "file", help="Catalog file (default: stdin)", type=Path, nargs="?"
    )
    listempty_parser.add_argument(
        "--limit",
        help="Limit number of entries (0 = no limit)",
        type=int,
        default=0,
    )
    listempty_parser.add_argument(
        "--language", help="Language code (uses config to resolve path)"
    )

    edit_parser = sub_parser.add_parser(
        "edit",
        help="Update msgid across all .po and .pot files and the source code",
        parents=[global_arguments],
    )
    edit_parser.add_argument("old_msgid", help="The msgid to replace")
    edit_parser.add_argument("new_msgid", help="The new msgid")
    edit_parser.add_argument(
        "--dry-run",
        help="Show what would be changed without modifying files",
        action="store_true",
    )

    translate_parser = sub_parser.add_parser(
        "translate",
        help="Merge 'msgid = msgstr' translations into a .po file",
        parents=[global_arguments],
    )
    translate_parser.add_argument(
        "paths",
        help="[po-file] [translation-file]; with --language only the translation file",
        type=Path,
        nargs="*",
    )
    translate_parser.add_argument(
        "-l", "--language", help="Language code (e.g. sv, en)"
    )
    translate_parser.add_argument(
        "-f",
        "--force",
        help="Continue even if msgids are not found",
        action="store_true",
    )
    translate_parser.add_argument(
        "--stdout",
        help="Output to stdout instead of updating the file in place",
        action="store_true",
    )

    sub_parser.add_parser("version", help="Print the version number of poflow")
    return parser


def load_config(config_path: Path | None, console: Console) -> Config:
    """Load the given or discovered configuration file, if any."""
    config = Config()
    if config_path is None:
        config_path = Config.discover()
    if config_path is not None:
        config.parse(config_path)
        console.print(f"Using config file: {escape(str(config_path))}")
    config.apply_environment()
    return config


def open_input(path: Path | None) -> ContextManager[IO[str]]:
    """Open a catalog, or use stdin when no path is given."""
    if path is None:
        return contextlib.nullcontext(sys.stdin)
    return open_catalog(path)


def resolve_catalog_path(
    config: Config, language: str | None, file: Path | None
) -> Path | None:
    """Return the catalog to read: by language, by path, or None for stdin."""
    if language:
        return config.resolve_po_path(language)
    return file


def print_entries(
    parser: CatalogParser,
    entries: Iterable[MsgEntry],
    json_output: bool,
    render: Callable[[MsgEntry], str],
) -> None:
    """Write the selected entries to stdout, then check the parser state."""
    for entry in entries:
        if json_output:
            sys.stdout.write(f"{entry_to_json(entry)}\n")
        else:
            sys.stdout.write(render(entry))
    if parser.error is not None:
        raise CatalogReadError(f"Error parsing file: {parser.error}", path=parser.path)


def handle_search_command(
    args: argparse.Namespace, config: Config, search_field: SearchField
) -> None:
    """Handle the search and searchvalue commands."""
    entry_filter = EntryFilter(args.pattern, search_field, use_regex=args.re)
    path = resolve_catalog_path(config, args.language, args.file)
    render = (
        format_entry
        if search_field == SearchField.MSGID
        else lambda entry: format_entry_summary(entry, with_comments=True)
    )
    with open_input(path) as stream:
        parser = CatalogParser(stream, path)
        print_entries(
            parser, search(parser, entry_filter, args.limit), args.json, render
        )


def handle_listempty_command(args: argparse.Namespace, config: Config) -> None:
    """Handle the listempty command."""
    path = resolve_catalog_path(config, args.language, args.file)
    with open_input(path) as stream:
        parser = CatalogParser(stream, path)
        print_entries(
            parser,
            list_untranslated(parser, args.limit),
            args.json,
            format_entry_summary,
        )


def handle_edit_command(
    args: argparse.Namespace, config: Config, console: Console
) -> None:
    """Handle the edit command."""
    catalog_paths = config.find_po_files()
    if (pot_file := config.find_pot_file()) is not None:
        catalog_paths.append(pot_file)
    if not catalog_paths:
        raise ConfigError("no .po or .pot files found in gettext directory")

    if args.dry_run:
        console.print("DRY RUN - No files will be modified\n")

    summary = RenameService().rename_everywhere(
        catalog_paths,
        args.old_msgid,
        args.new_msgid,
        RenameOptions(dry_run=args.dry_run, source_base_dir=Path.cwd()),
    )

    for result in summary.results:
        path = escape(str(result.path))
        if not result.success:
            console.print(f"  [red]✗[/red] {path}: {escape(result.error_message or '')}")
        elif result.entries_found:
            status = "[cyan]→[/cyan]" if args.dry_run else "[green]✓[/green]"
            console.print(f"  {status} {path} ({result.entries_found} entries)")
        for source_error in result.source_errors:
            console.print(
                f"  [yellow]Warning:[/yellow] failed to update source file "
                f"{escape(source_error)}"
            )

    console.print()
    if summary.total_entries == 0:
        console.print(f'No entries found matching "{escape(args.old_msgid)}"')
    elif args.dry_run:
        console.print(
            f"Would update {summary.files_with_matches} file(s) "
            f"with {summary.total_entries} total entries"
        )
        console.print("\nRun without --dry-run to apply changes")
    else:
        console.print(
            f"Updated {summary.files_with_matches} file(s) "
            f"with {summary.total_entries} total entries"
        )


def _print_not_found(console: Console, not_found: tuple[str, ...]) -> None:
    console.print(
        f"\n[yellow]Warning:[/yellow] {len(not_found)} msgid(s) not found in .po file:"
    )
    for msgid in not_found:
        console.print(f"  - {escape(msgid)}")


def handle_translate_command(
    args: argparse.Namespace, config: Config, console: Console
) -> None:
    """Handle the translate command."""
    paths: list[Path] = list(args.paths)
    if args.language:
        catalog_path = config.resolve_po_path(args.language)
        console.print(f"Resolved path: {escape(str(catalog_path))}")
    elif paths:
        catalog_path = paths.pop(0)
    else:
        raise ConfigError("either --language or po-file argument is required")

    if paths:
        with open(paths[0], encoding="utf-8") as file:
            translations = parse_translations(file)
    else:
        translations = parse_translations(sys.stdin)
    console.print(f"Loaded {len(translations)} translations")

    options = MergeOptions(
        force=args.force,
        output=sys.stdout if args.stdout else None,
        as_json=args.json and args.stdout,
    )
    try:
        result = MergeService().merge(catalog_path, translations, options)
    except UnmatchedTranslationsError as e:
        _print_not_found(console, e.not_found)
        raise

    if result.not_found:
        _print_not_found(console, result.not_found)

    if args.stdout:
        console.print(f"\nUpdated {result.updated_count} entries")
    else:
        console.print(
            f"\nUpdated {result.updated_count} translation(s) "
            f"in {escape(str(catalog_path))}:"
        )
        for msgid in result.updated:
            console.print(f"  [green]✓[/green] {escape(msgid)}")


def main(argv: list[str] | None = None) -> None:
    """
    Command Line Interface for poflow.
    Several commands are available:
    - search: Search entries by msgid
    - searchvalue: Search entries by msgstr
    - listempty: List untranslated entries
    - edit: Rename a msgid in every catalog and in the source code
    - translate: Merge translations into a catalog
    - version: Print the version
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"poflow version {__version__} (commit: {COMMIT})")
        sys.exit(0)

    console = Console(stderr=True, highlight=False, soft_wrap=True, quiet=args.quiet)
    error_console = Console(stderr=True, highlight=False, soft_wrap=True)
    try:
        config = load_config(args.config, console)
        config.setup_logging()

        match args.command:
            case "search":
                handle_search_command(args, config, SearchField.MSGID)
            case "searchvalue":
                handle_search_command(args, config, SearchField.MSGSTR)
            case "listempty":
                handle_listempty_command(args, config)
            case "edit":
                handle_edit_command(args, config, console)
            case "translate":
                handle_translate_command(args, config, console)
    except (PoflowError, OSError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
