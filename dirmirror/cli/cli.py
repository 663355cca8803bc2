# dirmirror/cli/cli.py
"""
Main mirror CLI.

    mirror --tool=create-db  --db=PATH SOURCE
    mirror --tool=verify-dir --db=PATH SOURCE
    mirror --tool=merge-dir  --db=PATH SOURCE DEST   (not implemented)

Exit status is 0 on success and 1 on any usage error or fatal failure.
Mismatches found by verify-dir are reported, not treated as failures.
"""

from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer

from dirmirror.cli.ui import ui
from dirmirror.core.config import MirrorConfig, load_config
from dirmirror.core.encoding import PathCodec
from dirmirror.core.exceptions import ErrorKind, MirrorError, UsageError
from dirmirror.logging import configure_logging, get_logger
from dirmirror.logging.tags import CLI
from dirmirror.snapshot import (
    CollectingMismatchHandler,
    CompositeMismatchHandler,
    Mismatch,
    MismatchDispatcher,
    create_db,
    verify_dir,
)
from dirmirror.store import available_engines, managed_store
from dirmirror.version import AUTHOR, AUTHOR_ASCII, COPYRIGHT_YEAR, PROGRAM_NAME, __version__

logger = get_logger(__name__)

app = typer.Typer(
    name=PROGRAM_NAME,
    help="Make snapshots of directory trees and check mirrors against them.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


class Tool(str, Enum):
    CREATE_DB = "create-db"
    VERIFY_DIR = "verify-dir"
    MERGE_DIR = "merge-dir"


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _usage_error(message: str) -> typer.Exit:
    ui.error(message)
    ui.hint(f"Try '{PROGRAM_NAME} --help' for more information.")
    return typer.Exit(1)


def _author() -> str:
    encoding = sys.stdout.encoding or "ascii"
    try:
        AUTHOR.encode(encoding)
    except (UnicodeEncodeError, LookupError):
        return AUTHOR_ASCII
    return AUTHOR


def version_text() -> str:
    author = _author()
    return (
        f"{PROGRAM_NAME} {__version__}\n"
        f"Copyright (C) {COPYRIGHT_YEAR} {author}.\n"
        "License GPLv3+: GNU GPL version 3 or later <http://gnu.org/licenses/gpl.html>.\n"
        "This is free software: you are free to change and redistribute it.\n"
        "There is NO WARRANTY, to the extent permitted by law.\n"
        "\n"
        f"Written by {author}."
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(version_text())
        raise typer.Exit()


def parse_tool(value: Optional[str]) -> Optional[Tool]:
    if value is None:
        return None
    try:
        return Tool(value)
    except ValueError:
        choices = ", ".join(t.value for t in Tool)
        raise UsageError(f"Unknown tool: '{value}'. Available: {choices}") from None


def validate_arguments(
    tool: Optional[Tool],
    db: Optional[Path],
    paths: List[str],
) -> Tool:
    """
    Check tool, database and positional arguments.

    Raises:
        UsageError: With the message to show the user.
    """
    if not paths:
        raise UsageError("No SOURCE file/directory.")
    if len(paths) > 2:
        raise UsageError("Only SOURCE and DEST files/directories can be specified.")
    if tool is Tool.MERGE_DIR and len(paths) < 2:
        raise UsageError("SOURCE and DEST files/directories must be specified for merge-dir.")
    if tool is None:
        raise UsageError("No tool specified.")
    if db is None:
        raise UsageError("No DB specified.")
    if tool is not Tool.MERGE_DIR and len(paths) > 1:
        raise UsageError(f"{tool.value} takes exactly one SOURCE.")
    return tool


class ConsoleMismatchHandler(MismatchDispatcher):
    """Prints each mismatch as soon as it is found."""

    def on_mismatch(self, mismatch: Mismatch) -> None:
        ui.error(mismatch.describe())


# ---------------------------------------------------------------------------
# tools
# ---------------------------------------------------------------------------


def _run_create(
    source: str,
    db: Path,
    engine: Optional[str],
    config: MirrorConfig,
    codec: PathCodec,
) -> None:
    with managed_store(db, engine, create=True) as store:
        with ui.spinner(f"Recording '{source}'..."):
            summary = create_db(
                source,
                store,
                codec=codec,
                chunk_size=config.scan.chunk_size,
            )

    ui.success(f"Snapshot of '{source}' written to '{db}'")
    ui.summary_panel(
        f"Directories: {summary.directories}\n"
        f"Files:       {summary.files}\n"
        f"Bytes:       {summary.bytes_hashed}\n"
        f"Skipped:     {summary.skipped} (not regular files or directories)\n"
        f"No access:   {summary.denied} directories\n"
        f"Duration:    {summary.duration_seconds:.2f}s",
        title="create-db",
    )


def _run_verify(
    source: str,
    db: Path,
    engine: Optional[str],
    config: MirrorConfig,
    codec: PathCodec,
) -> None:
    collector = CollectingMismatchHandler()
    handler = CompositeMismatchHandler([ConsoleMismatchHandler(), collector])

    with managed_store(db, engine, create=False) as store:
        summary = verify_dir(
            source,
            store,
            handler,
            codec=codec,
            chunk_size=config.scan.chunk_size,
        )

    if collector.is_clean:
        ui.success(
            f"'{source}' matches '{db}' "
            f"({summary.directories} directories, {summary.files} files)"
        )
        return

    ui.table(
        ["Mismatch", "Count"],
        [[name, str(count)] for name, count in sorted(collector.counts.items())],
        title="verify-dir",
    )
    ui.warning(
        f"{len(collector.mismatches)} mismatches in '{source}'",
        detail=f"{summary.directories} directories, {summary.files} files checked",
    )


# ---------------------------------------------------------------------------
# command
# ---------------------------------------------------------------------------


@app.command()
def run(
    paths: Optional[List[str]] = typer.Argument(
        None,
        metavar="SOURCE [DEST]",
        help="Directory to record or verify (merge-dir also takes DEST).",
        show_default=False,
    ),
    tool: Optional[str] = typer.Option(
        None,
        "--tool",
        "-t",
        metavar="[create-db|verify-dir|merge-dir]",
        help="Tool to use.",
    ),
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        "-d",
        help="Location of the metadata store.",
    ),
    engine: Optional[str] = typer.Option(
        None,
        "--engine",
        help=f"Store engine ({', '.join(available_engines())}); default picks by --db suffix.",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="YAML config file (overrides $MIRROR_CONFIG).",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log debug diagnostics to stderr."),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """
    Record a directory tree into a metadata store, or verify a tree against it.
    """
    try:
        selected = validate_arguments(parse_tool(tool), db, list(paths or []))
    except UsageError as e:
        raise _usage_error(str(e))

    try:
        config = load_config(config_path)
        store_engine = engine or config.store.engine
        configure_logging("DEBUG" if verbose else config.logging.level)

        # Resolved once; every component receives it explicitly.
        codec = PathCodec.from_system()
        source = paths[0]
        logger.debug(f"{CLI} tool={selected.value} db='{db}' source='{source}'")

        if selected is Tool.CREATE_DB:
            _run_create(source, db, store_engine, config, codec)
        elif selected is Tool.VERIFY_DIR:
            _run_verify(source, db, store_engine, config, codec)
        else:
            raise UsageError("merge-dir is not implemented yet.")
    except MirrorError as e:
        logger.debug(f"{CLI} Aborting on {e.kind.value} error")
        if e.kind is ErrorKind.USAGE:
            raise _usage_error(str(e))
        ui.error(str(e))
        raise typer.Exit(1)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Console entry point.

    The typer app runs in standalone mode and reports its own parser
    errors (exit status 2); every non-zero status is mapped to 1.
    """
    try:
        app(
            args=argv if argv is not None else sys.argv[1:],
            prog_name=PROGRAM_NAME,
        )
    except SystemExit as e:
        return 0 if e.code in (None, 0) else 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
