from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import constants as cs
from .config import settings
from .engine.models import RewriteOptions
from .schemas import FileMigration
from .services.migrator import LogMigrator

console = Console()


def style(
    text: str, color: cs.Color, modifier: cs.StyleModifier = cs.StyleModifier.BOLD
) -> str:
    if modifier == cs.StyleModifier.NONE:
        return f"[{color}]{text}[/{color}]"
    return f"[{modifier} {color}]{text}[/{modifier} {color}]"


def dim(text: str) -> str:
    return f"[{cs.StyleModifier.DIM}]{text}[/{cs.StyleModifier.DIM}]"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=cs.CLI_PROG, description=cs.CLI_DESCRIPTION)
    parser.add_argument("path", type=Path, help="Java file or source directory")
    parser.add_argument(
        "--target",
        choices=[framework.value for framework in cs.Framework],
        help="Framework every logging call is migrated to",
    )
    parser.add_argument(
        "--write", action="store_true", help="Write rewritten files in place"
    )
    parser.add_argument(
        "--diff", action="store_true", help="Print a unified diff per changed file"
    )
    parser.add_argument("--field-name", help="Name of synthesized logger fields")
    parser.add_argument("--max-cycles", type=int, help="Rewrite cycle limit per file")
    parser.add_argument(
        "--no-add-logger",
        action="store_true",
        help="Never synthesize a logger field; skip sites without one",
    )
    parser.add_argument(
        "--console-level",
        choices=[cs.Severity.TRACE, cs.Severity.DEBUG, cs.Severity.INFO],
        help="Severity for System.out prints",
    )
    parser.add_argument(
        "--enable",
        action="append",
        default=[],
        metavar="RULE",
        help="Enable a rule (repeatable)",
    )
    parser.add_argument(
        "--disable",
        action="append",
        default=[],
        metavar="RULE",
        help="Disable a rule (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _setup_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, format=cs.LOG_FORMAT, level="DEBUG" if verbose else "INFO")


def _print_diff(migration: FileMigration) -> None:
    separator = dim(cs.HORIZONTAL_SEPARATOR)
    console.print(separator)
    for raw_line in (migration.diff or "").splitlines():
        line = escape(raw_line)
        match line[:1]:
            case cs.DiffMarker.ADD | cs.DiffMarker.DEL if line.startswith(
                cs.DiffMarker.HEADER_ADD
            ) or line.startswith(cs.DiffMarker.HEADER_DEL):
                console.print(dim(line), highlight=False)
            case cs.DiffMarker.HUNK:
                console.print(style(line, cs.Color.CYAN, cs.StyleModifier.NONE))
            case cs.DiffMarker.ADD:
                console.print(style(line, cs.Color.GREEN, cs.StyleModifier.NONE))
            case cs.DiffMarker.DEL:
                console.print(style(line, cs.Color.RED, cs.StyleModifier.NONE))
            case _:
                console.print(raw_line, markup=False, highlight=False)
    console.print(separator)


def _summary_table(migrations: Sequence[FileMigration]) -> Table:
    table = Table(title=style(cs.SUMMARY_TABLE_TITLE, cs.Color.GREEN))
    table.add_column(cs.TABLE_COL_FILE, style=cs.Color.CYAN)
    table.add_column(cs.TABLE_COL_REWRITES, style=cs.Color.MAGENTA, justify="right")
    table.add_column(cs.TABLE_COL_STATUS)

    for migration in migrations:
        if migration.failed:
            status = style(cs.STATUS_FAILED, cs.Color.RED)
        elif migration.changed:
            status = style(cs.STATUS_CHANGED, cs.Color.GREEN)
        else:
            status = dim(cs.STATUS_UNCHANGED)
        table.add_row(escape(migration.path), str(len(migration.rewrites)), status)
    return table


def _options(args: argparse.Namespace) -> RewriteOptions:
    root = args.path if args.path.is_dir() else args.path.parent
    return settings.rewrite_options(
        target=args.target,
        logger_field_name=args.field_name,
        max_cycles=args.max_cycles,
        add_logger=False if args.no_add_logger else None,
        console_out_level=args.console_level,
        enable_rules=args.enable,
        disable_rules=args.disable,
        root=root,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if not args.path.exists():
        parser.error(f"path does not exist: {args.path}")
    try:
        options = _options(args)
    except ValueError as e:
        parser.error(str(e))

    migrator = LogMigrator(options)
    migrations = migrator.migrate_path(args.path, write=args.write)

    if args.diff:
        for migration in migrations:
            if migration.changed:
                _print_diff(migration)

    changed = [m for m in migrations if m.changed]
    if migrations:
        console.print(_summary_table(migrations))
    if not changed:
        console.print(style(cs.MSG_NOTHING_TO_DO, cs.Color.YELLOW))
    elif not args.write:
        console.print(style(cs.MSG_DRY_RUN, cs.Color.YELLOW))

    return 1 if any(m.failed for m in migrations) else 0


if __name__ == "__main__":
    sys.exit(main())
