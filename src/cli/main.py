"""fb2shelf CLI entry points.

This module exposes import, list, and export commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from core.config import ShelfConfig
from core.errors import ShelfError
from core.logging_config import configure_console_logging
from core.types import PipelineOptions
from store.library_sdk import ShelfClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="fb2shelf", description="FictionBook library CLI")
    parser.add_argument("--data-root", help="Override SHELF_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_import_command(subparsers)
    _add_list_command(subparsers)
    _add_export_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the fb2shelf CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code: 0 on success, 1 on a fatal error.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_console_logging()
    try:
        client = _build_client(args.data_root)
        try:
            return _dispatch(parser, client, args)
        finally:
            client.close()
    except ShelfError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    client: ShelfClient,
    args: argparse.Namespace,
) -> int:
    if args.command == "import":
        return _run_import_command(client, args)
    if args.command == "list":
        return _run_list_command(client)
    if args.command == "export":
        return _run_export_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> ShelfClient:
    """Build SDK client with optional data-root override."""
    config = ShelfConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return ShelfClient(config)


def _run_import_command(client: ShelfClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = PipelineOptions(
        workers=args.workers if args.workers is not None else client.config.workers,
        queue_size=args.queue_size if args.queue_size is not None else client.config.queue_size,
    )
    summary = client.import_archive(args.archive, options)
    for outcome in summary.failed_entries():
        print(f"failed\t{outcome.entry_name}\t{outcome.stage}\t{outcome.detail}")
    print(f"stored={summary.stored} skipped={summary.skipped} failed={summary.failed}")
    return 0


def _run_list_command(client: ShelfClient) -> int:
    """Handle list command."""
    for book in client.books():
        print(f"{book.book_id}\t{book.file_name}\t{book.title}")
    return 0


def _run_export_command(client: ShelfClient, args: argparse.Namespace) -> int:
    """Handle export command."""
    result = client.export(args.out, output_uri=args.output_uri)
    print(f"pages={len(result.page_paths)} output_dir={result.output_dir}")
    return 0


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Import FictionBook files from an archive")
    parser.add_argument("archive", help="Path to a zip, 7z, or tar archive")
    parser.add_argument("--workers", type=int, help="Worker thread count")
    parser.add_argument("--queue-size", type=int, help="Work queue capacity, 0 for unbounded")


def _add_list_command(subparsers: Any) -> None:
    """Register list subcommand."""
    subparsers.add_parser("list", help="List stored books")


def _add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser("export", help="Export stored books as Hugo content")
    parser.add_argument("--out", required=True, help="Hugo site output directory")
    parser.add_argument("--output-uri", help="Optional s3:// publish destination")
