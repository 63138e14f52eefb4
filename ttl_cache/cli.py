#!/usr/bin/env python3
"""
TTL-Cache Snapshot Tool

Command line entry point for inspecting and pruning cache snapshot files.

Usage:
    python -m ttl_cache inspect cache.snapshot          # List live entries
    python -m ttl_cache prune cache.snapshot            # Drop expired entries in place
    python -m ttl_cache prune in.snapshot -o out.snapshot
    python -m ttl_cache --debug inspect cache.snapshot  # Enable debug logging

Snapshots holding application-defined value types can only be read by a
process that registered those types, so this tool handles snapshots of
built-in value types.

Environment Variables:
    TTL_CACHE_SNAPSHOT_PATH - Default snapshot path
    TTL_CACHE_DEBUG         - Enable debug mode (true/false)
"""

import argparse
import logging
import os
import sys
import tempfile
import time
from typing import List, Optional

from .cache.store import Cache
from .config.settings import settings
from .errors import CacheError, CacheIOError

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ttl-cache",
        description="TTL-Cache: inspect and prune cache snapshot files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser("inspect", help="List the live entries of a snapshot")
    inspect_parser.add_argument(
        "path",
        nargs="?",
        default=settings.SNAPSHOT_PATH,
        help="Snapshot file to read",
    )

    prune_parser = subparsers.add_parser("prune", help="Remove expired entries from a snapshot")
    prune_parser.add_argument(
        "path",
        nargs="?",
        default=settings.SNAPSHOT_PATH,
        help="Snapshot file to read",
    )
    prune_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="File to write the pruned snapshot to (default: overwrite the input)",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def inspect_snapshot(path: str) -> None:
    """Print cache statistics and every live entry of a snapshot."""
    with Cache(default_ttl=0, sweep_interval=0) as cache:
        cache.load_file(path)
        stats = cache.get_stats()
        print(f"{path}: {stats['active_keys']} live, {stats['expired_keys']} expired")

        for key, entry in sorted(cache.items().items()):
            remaining = entry.remaining(time.time_ns())
            ttl = "never" if entry.expires_at == 0 else f"{remaining:.1f}s"
            print(f"  {key}\t{type(entry.value).__name__}\t{ttl}")


def prune_snapshot(path: str, output: Optional[str] = None) -> int:
    """
    Rewrite a snapshot without its expired entries.

    The pruned snapshot is written to a temporary file next to the target
    and renamed over it, so a failed write leaves the target untouched.

    Returns:
        Number of entries removed
    """
    with Cache(default_ttl=0, sweep_interval=0) as cache:
        cache.load_file(path)
        removed = cache.delete_expired()
        _save_replacing(cache, output or path)

    logger.info(f"Pruned {removed} expired entries from {path}")
    return removed


def _save_replacing(cache: Cache, target: str) -> None:
    directory = os.path.dirname(os.path.abspath(target))
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".ttl-cache-", suffix=".tmp", dir=directory)
    except OSError as exc:
        raise CacheIOError(f"cannot create temporary file in {directory}: {exc}") from exc
    os.close(fd)

    try:
        cache.save_file(tmp_path)
        os.replace(tmp_path, target)
    except OSError as exc:
        _remove_quietly(tmp_path)
        raise CacheIOError(f"cannot replace {target}: {exc}") from exc
    except BaseException:
        _remove_quietly(tmp_path)
        raise


def _remove_quietly(path: str) -> None:
    # The error that made the file unwanted takes precedence
    try:
        os.unlink(path)
    except OSError as exc:
        logger.warning(f"Could not remove {path}: {exc}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the snapshot tool."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        if args.command == "inspect":
            inspect_snapshot(args.path)
        elif args.command == "prune":
            prune_snapshot(args.path, args.output)
    except CacheError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
