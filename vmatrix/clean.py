#!/usr/bin/env python3
"""Checkout cache cleanup for the matrix runner.

This module provides commands to list and remove cached component checkouts.
"""

import argparse
import shutil
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import get_config


def checkout_sizes(cache_dir: Path) -> List[Tuple[Path, int]]:
    """(checkout, bytes on disk) for each checkout in ``cache_dir``, by name."""
    if not cache_dir.is_dir():
        return []
    return [
        (path, sum(f.stat().st_size for f in path.rglob("*") if f.is_file() and not f.is_symlink()))
        for path in sorted(cache_dir.iterdir())
        if path.is_dir()
    ]


def format_size(size: float) -> str:
    units = ("B", "KB", "MB", "GB", "TB")
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{size:.1f} {units[index]}"


def checkout_kind(path: Path) -> str:
    """Name the version control tool owning a checkout, if any."""
    if (path / ".hg").is_dir():
        return "hg"
    if (path / ".git").exists():
        return "git"
    return "?"


def clean_directory(
    cache_dir: Path,
    components: Optional[Sequence[str]] = None,
    dry_run: bool = False,
) -> Tuple[int, int]:
    """Remove cached checkouts.

    Args:
        cache_dir: Path to cache directory.
        components: Only remove these component checkouts (default: all).
        dry_run: If True, only report what would be deleted.

    Returns:
        Tuple of (items_removed, bytes_freed).
    """
    items = checkout_sizes(cache_dir)
    if components is not None:
        wanted = set(components)
        items = [(path, size) for path, size in items if path.name in wanted]
    total_items = len(items)
    total_bytes = sum(size for _, size in items)

    if dry_run:
        return total_items, total_bytes

    for path, _ in items:
        shutil.rmtree(path, ignore_errors=True)

    return total_items, total_bytes


def list_cache_contents(config=None):
    """List the cached component checkouts."""
    if config is None:
        config = get_config()

    print(f"Checkout Cache: {config.cache_dir}")
    if not config.cache_dir.exists():
        print("  (not created)")
        return

    items = checkout_sizes(config.cache_dir)
    if not items:
        print("  (empty)")
        return

    total = 0
    for path, size in items:
        configured = "" if path.name in config.components else " (not configured)"
        print(f"  {path.name:20} {checkout_kind(path):4} {format_size(size):>10}{configured}")
        total += size
    print(f"  {'─' * 37}")
    print(f"  {'Total':25} {format_size(total):>10}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for vmatrix-clean command."""
    parser = argparse.ArgumentParser(
        prog="vmatrix-clean",
        description="Clean cached component checkouts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what's in the cache
  vmatrix-clean --list

  # Remove every checkout (with confirmation)
  vmatrix-clean --all

  # Remove one checkout so the next run clones it afresh
  vmatrix-clean --component dulwich

  # Dry run - show what would be deleted
  vmatrix-clean --all --dry-run

Cache Location:
  ~/.cache/remote-hg-matrix/checkouts/ (override with VMATRIX_CACHE_DIR)
"""
    )

    parser.add_argument(
        "--list", "-l",
        action="store_true",
        help="List cache contents without deleting"
    )
    parser.add_argument(
        "--all", "-a",
        action="store_true",
        help="Remove all cached checkouts"
    )
    parser.add_argument(
        "--component", "-c",
        action="append",
        default=[],
        metavar="ID",
        help="Remove the checkout of one component (can be repeated)"
    )
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Show what would be deleted without actually deleting"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Skip confirmation prompt"
    )

    args = parser.parse_args(argv)

    config = get_config()

    # Default to --list if no action specified
    if not (args.list or args.all or args.component):
        args.list = True

    if args.list:
        list_cache_contents(config)
        return 0

    components = None if args.all else args.component
    items, size = clean_directory(config.cache_dir, components, dry_run=True)

    if items == 0:
        print("Nothing to clean.")
        return 0

    print(f"Will delete: {items} checkouts, {format_size(size)}")

    if args.dry_run:
        print("\n(Dry run - nothing deleted)")
        return 0

    # Confirm unless --force
    if not args.force:
        try:
            response = input("\nProceed? [y/N] ")
            if response.lower() not in ['y', 'yes']:
                print("Cancelled.")
                return 0
        except (EOFError, KeyboardInterrupt):
            print("\nCancelled.")
            return 0

    items, bytes_freed = clean_directory(config.cache_dir, components)
    print(f"Cleaned checkout cache: {items} checkouts, {format_size(bytes_freed)}")
    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
