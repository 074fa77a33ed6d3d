"""Shared fixtures building real package databases."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import pytest

from agentshelf.index.storage import PackageDatabase, build_chunk
from agentshelf.index.store import PackageStore, read_package_info
from agentshelf.utils.files import package_filename

ChunkSpec = dict


def write_package(
    directory: Path,
    name: str,
    version: str,
    chunks: Sequence[ChunkSpec],
    *,
    description: str = "",
) -> Path:
    """Create a package file holding ``chunks`` and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    db_path = directory / package_filename(name, version)
    db = PackageDatabase.create(db_path, name=name, version=version, description=description)
    try:
        db.insert_chunks([build_chunk(**fields) for fields in chunks])
        db.rebuild_fts_index()
    finally:
        db.close()
    return db_path


@pytest.fixture
def packages_dir(tmp_path: Path) -> Path:
    path = tmp_path / "packages"
    path.mkdir()
    return path


@pytest.fixture
def make_package(packages_dir: Path) -> Callable[..., Path]:
    def _make(name: str, version: str, chunks: Sequence[ChunkSpec], **kwargs) -> Path:
        return write_package(packages_dir, name, version, chunks, **kwargs)

    return _make


@pytest.fixture
def store() -> PackageStore:
    return PackageStore()


@pytest.fixture
def add_library(store: PackageStore, make_package) -> Callable[..., Path]:
    """Write a package and register it in ``store``."""

    def _add(name: str, version: str, chunks: Sequence[ChunkSpec], **kwargs) -> Path:
        db_path = make_package(name, version, chunks, **kwargs)
        store.add(read_package_info(db_path))
        return db_path

    return _add


def chunk(
    doc_path: str,
    doc_title: str,
    section_title: str,
    content: str,
    tokens: int | None = None,
) -> ChunkSpec:
    return {
        "doc_path": doc_path,
        "doc_title": doc_title,
        "section_title": section_title,
        "content": content,
        "tokens": tokens,
    }
