"""Registry of installed documentation packages."""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping

from agentshelf.index.storage import PackageDatabase
from agentshelf.models import PackageInfo
from agentshelf.utils.files import iter_package_paths

LOGGER = logging.getLogger(__name__)


def read_package_info(db_path: Path) -> PackageInfo:
    """Read name, version and section count from a package file.

    Raises ``ValueError`` if the file lacks the required metadata and
    ``sqlite3.DatabaseError`` if it is not a package database.
    """
    db_path = Path(db_path)
    if not db_path.is_file():
        raise FileNotFoundError(db_path)

    with PackageDatabase(db_path) as db:
        meta = db.meta
        section_count = db.count_chunks()

    name = meta.get("name")
    version = meta.get("version")
    if not name or not version:
        raise ValueError(f"Package metadata missing name or version: {db_path}")

    return PackageInfo(
        name=name,
        version=version,
        path=db_path,
        section_count=section_count,
        description=meta.get("description", ""),
    )


class PackageStore:
    """In-memory registry mapping library names to package files.

    The mapping is an immutable snapshot swapped wholesale on every write, so
    readers never need the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._packages: Mapping[str, PackageInfo] = MappingProxyType({})

    def add(self, info: PackageInfo) -> None:
        with self._lock:
            packages = dict(self._packages)
            packages[info.name] = info
            self._packages = MappingProxyType(packages)

    def get(self, name: str) -> PackageInfo | None:
        return self._packages.get(name)

    def list(self) -> List[PackageInfo]:
        return list(self._packages.values())

    def remove(self, name: str) -> bool:
        with self._lock:
            if name not in self._packages:
                return False
            packages = dict(self._packages)
            del packages[name]
            self._packages = MappingProxyType(packages)
        return True

    def open_db(self, name: str) -> PackageDatabase | None:
        """Open a fresh read-only handle; the caller must close it.

        Returns ``None`` if the package is unknown or its file is unusable.
        """
        info = self.get(name)
        if info is None:
            return None
        if not info.path.is_file():
            LOGGER.warning("Package file missing for %s: %s", info.library, info.path)
            return None

        db: PackageDatabase | None = None
        try:
            db = PackageDatabase(info.path)
            db.meta
        except sqlite3.DatabaseError as exc:
            LOGGER.warning("Unable to open package %s: %s", info.library, exc)
            if db is not None:
                db.close()
            return None
        return db

    def __len__(self) -> int:
        return len(self._packages)


def load_packages(directory: Path) -> PackageStore:
    """Build a store from every package file found in ``directory``."""
    store = PackageStore()
    directory = Path(directory)
    if not directory.is_dir():
        LOGGER.debug("Packages directory not found: %s", directory)
        return store

    for path in iter_package_paths([directory]):
        try:
            info = read_package_info(path)
        except (sqlite3.DatabaseError, ValueError) as exc:
            LOGGER.warning("Skipping %s: %s", path, exc)
            continue
        store.add(info)
        LOGGER.debug("Registered %s (%d sections)", info.library, info.section_count)
    return store
