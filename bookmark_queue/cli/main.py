"""Command line capture surface for the shared bookmark queue.

Usage:
    bookmark-queue save URL [--title TITLE] [--note NOTE] [--selection TEXT] [--retries N]
    bookmark-queue list [--limit N] [--json]
    bookmark-queue check

The token and gist id come from GITHUB_TOKEN and GIST_ID.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from bookmark_queue.capture.client import (
    AUTOMATION_SCRIPT,
    BROWSER_EXTENSION,
    CaptureClient,
    CaptureDraft,
    ClientProfile,
    gist_store_factory,
)
from bookmark_queue.config import load_config
from bookmark_queue.core.errors import QueueSyncError
from bookmark_queue.core.logging_utils import setup_logging
from bookmark_queue.domain.bookmark import serialize_queue
from bookmark_queue.sync.queue_sync import QueueSync, check_credentials

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bookmark_queue.capture.client import StoreFactory
    from bookmark_queue.config import GistConfig

logger = logging.getLogger(__name__)

_PROFILES = {"browser": BROWSER_EXTENSION, "automation": AUTOMATION_SCRIPT}


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


async def run_save(
    config: GistConfig,
    args: argparse.Namespace,
    store_factory: StoreFactory | None = None,
) -> int:
    """Append one bookmark. Returns the exit code."""
    profile: ClientProfile = _PROFILES[args.client]
    if args.source is not None:
        profile = ClientProfile(
            name=profile.name, source=args.source, captures_selection=profile.captures_selection
        )

    client = CaptureClient(
        config,
        profile,
        store_factory=store_factory,
        max_attempts=args.retries + 1,
    )
    draft = CaptureDraft(
        url=args.url, title=args.title, selection=args.selection, note=args.note
    )
    outcome = await client.save(draft)
    print(outcome.display_text())
    if outcome.ok and outcome.bookmark is not None:
        print(f"  {_truncate(outcome.bookmark.title, 100)}")
        print(f"  {_truncate(outcome.bookmark.url, 60)}")
        print(f"  Queue now holds {outcome.queue_length} bookmarks")
        return 0
    return 1


async def run_list(
    config: GistConfig,
    args: argparse.Namespace,
    store_factory: StoreFactory | None = None,
) -> int:
    """Print the queue without modifying it."""
    factory = store_factory or gist_store_factory
    try:
        check_credentials(config.token, config.gist_id)
        async with factory(config) as store:
            bookmarks = await QueueSync(store, config.filename).fetch_list(config.gist_id)
    except QueueSyncError as exc:
        print(f"Error: {exc.display_message()}")
        return 1

    if args.limit is not None:
        bookmarks = bookmarks[-args.limit :]

    if args.json:
        print(serialize_queue(bookmarks))
        return 0

    if not bookmarks:
        print("Queue is empty.")
        return 0

    print(f"=== Bookmark Queue ({len(bookmarks)}) ===")
    for bookmark in bookmarks:
        tag = f" ({bookmark.source})" if bookmark.source else ""
        print(f"[{bookmark.timestamp}] {_truncate(bookmark.title, 80)}{tag}")
        print(f"    {bookmark.url}")
        if bookmark.note:
            print(f"    note: {_truncate(bookmark.note, 100)}")
    return 0


async def run_check(config: GistConfig, store_factory: StoreFactory | None = None) -> int:
    """Verify configuration and that the remote queue parses."""
    factory = store_factory or gist_store_factory
    print(f"Gist ID: {config.gist_id}")
    print(f"File: {config.filename}")
    print(f"Token: {'configured' if config.has_token else 'missing'}")
    try:
        check_credentials(config.token, config.gist_id)
        async with factory(config) as store:
            bookmarks = await QueueSync(store, config.filename).fetch_list(config.gist_id)
    except QueueSyncError as exc:
        print(f"Error: {exc.display_message()}")
        return 1
    print(f"OK: queue holds {len(bookmarks)} bookmarks")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bookmark-queue",
        description="Append bookmarks to a shared queue stored in a GitHub gist",
    )
    parser.add_argument("--gist-id", default=None, help="Override GIST_ID")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")

    sub = parser.add_subparsers(dest="command", required=True)

    save = sub.add_parser("save", help="Append one bookmark to the queue")
    save.add_argument("url", help="Page URL")
    save.add_argument("--title", default=None, help="Page title (defaults to the URL)")
    save.add_argument("--note", default=None, help="Optional note")
    save.add_argument("--selection", default=None, help="Optional highlighted text")
    save.add_argument(
        "--client",
        choices=sorted(_PROFILES),
        default="browser",
        help="Capture profile to emulate",
    )
    save.add_argument("--source", default=None, help="Override the record's source tag")
    save.add_argument(
        "--retries",
        type=int,
        default=0,
        help="Re-run the whole append this many times on network errors",
    )

    lst = sub.add_parser("list", help="Print the queue")
    lst.add_argument("--limit", type=int, default=None, help="Only show the last N bookmarks")
    lst.add_argument("--json", action="store_true", help="Print raw JSON")

    sub.add_parser("check", help="Validate configuration and the remote queue")
    return parser


def main(argv: Sequence[str] | None = None, *, store_factory: StoreFactory | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "save" and args.retries < 0:
        parser.error("--retries must be >= 0")
    if args.command == "list" and args.limit is not None and args.limit < 1:
        parser.error("--limit must be >= 1")

    overrides: dict[str, str] = {}
    if args.gist_id:
        overrides["GIST_ID"] = args.gist_id
    if args.log_level:
        overrides["LOG_LEVEL"] = args.log_level

    try:
        cfg = load_config(**overrides)
    except QueueSyncError as exc:
        print(f"Error: {exc.display_message()}")
        return 1

    setup_logging(
        cfg.runtime.log_level, json_logs=cfg.runtime.log_json, log_file=cfg.runtime.log_file
    )

    logger.info(
        "cli_command_started",
        extra={"command": args.command, "gist_id": cfg.gist.gist_id},
    )

    if args.command == "save":
        return asyncio.run(run_save(cfg.gist, args, store_factory))
    if args.command == "list":
        return asyncio.run(run_list(cfg.gist, args, store_factory))
    return asyncio.run(run_check(cfg.gist, store_factory))


if __name__ == "__main__":
    sys.exit(main())
