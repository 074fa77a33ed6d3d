"""Utility helpers for working with package files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

PACKAGE_SUFFIX = ".db"


def iter_package_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield package database paths, descending one level into directories."""
    for item in inputs:
        if item.is_dir():
            yield from sorted(
                child
                for child in item.iterdir()
                if child.is_file() and child.suffix.lower() == PACKAGE_SUFFIX
            )
        elif item.is_file() and item.suffix.lower() == PACKAGE_SUFFIX:
            yield item


def package_filename(name: str, version: str) -> str:
    """Conventional file name for a package, e.g. ``express@4.21.0.db``."""
    # Scoped npm names (@scope/pkg) cannot contain a path separator on disk
    safe_name = name.replace("/", "__")
    return f"{safe_name}@{version}{PACKAGE_SUFFIX}"
