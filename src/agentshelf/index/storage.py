"""SQLite + FTS5 package database."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Sequence

from agentshelf.models import Chunk
from agentshelf.utils.text import estimate_tokens


def build_chunk(
    doc_path: str,
    doc_title: str,
    section_title: str,
    content: str,
    tokens: int | None = None,
) -> Chunk:
    """Create a chunk, estimating its token count from the content if needed."""
    if tokens is None:
        tokens = estimate_tokens(content)
    if tokens <= 0:
        raise ValueError(f"Chunk token count must be positive, got {tokens}")
    return Chunk(
        doc_path=doc_path,
        doc_title=doc_title,
        section_title=section_title,
        content=content,
        tokens=tokens,
    )


class PackageDatabase:
    """Full-text index holding the documentation chunks of one library.

    Handles open read-only by default. Use :meth:`create` to build a new
    package file from pre-chunked content.
    """

    def __init__(self, db_path: Path, *, readonly: bool = True) -> None:
        self.db_path = Path(db_path)
        self.readonly = readonly
        if readonly:
            # mode=ro refuses to create a missing file
            uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
            self._conn = sqlite3.connect(uri, uri=True)
        else:
            self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._meta: Dict[str, str] | None = None
        if not readonly:
            self._ensure_schema()

    @classmethod
    def create(
        cls,
        db_path: Path,
        *,
        name: str,
        version: str,
        description: str = "",
    ) -> "PackageDatabase":
        db = cls(db_path, readonly=False)
        db.set_meta(name=name, version=version, description=description)
        return db

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "PackageDatabase":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunks (
                    id INTEGER PRIMARY KEY,
                    doc_path TEXT NOT NULL,
                    doc_title TEXT NOT NULL,
                    section_title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    tokens INTEGER NOT NULL CHECK (tokens > 0)
                )
                """
            )
            conn.execute(
                """
                CREATE VIRTUAL TABLE IF NOT EXISTS chunks_fts USING fts5(
                    doc_title,
                    section_title,
                    content,
                    content='chunks',
                    content_rowid='id',
                    tokenize='porter unicode61'
                )
                """
            )

    def set_meta(self, **values: str) -> None:
        self._meta = None
        with self.transaction() as conn:
            conn.executemany(
                "INSERT OR REPLACE INTO meta(key, value) VALUES (?, ?)",
                [(key, str(value)) for key, value in values.items()],
            )

    def read_meta(self) -> Dict[str, str]:
        rows = self._conn.execute("SELECT key, value FROM meta").fetchall()
        return {row["key"]: row["value"] for row in rows}

    @property
    def meta(self) -> Dict[str, str]:
        """Package metadata, read once per handle."""
        if self._meta is None:
            self._meta = self.read_meta()
        return self._meta

    def count_chunks(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]

    def insert_chunks(self, chunks: Sequence[Chunk]) -> None:
        """Append chunks in storage order. Call :meth:`rebuild_fts_index` afterwards."""
        with self.transaction() as conn:
            conn.executemany(
                """
                INSERT INTO chunks(doc_path, doc_title, section_title, content, tokens)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (
                        chunk.doc_path,
                        chunk.doc_title,
                        chunk.section_title,
                        chunk.content,
                        chunk.tokens,
                    )
                    for chunk in chunks
                ],
            )

    def rebuild_fts_index(self) -> None:
        with self.transaction() as conn:
            conn.execute("INSERT INTO chunks_fts(chunks_fts) VALUES ('rebuild')")

    def match(self, match_query: str) -> List[dict]:
        """Run a ranked full-text match.

        Rows are ordered by score descending, then storage order. ``score`` is
        the negated FTS5 ``bm25()`` value, so higher means more relevant.
        """
        if not match_query:
            return []
        rows = self._conn.execute(
            """
            SELECT
                c.id AS id,
                c.doc_path AS doc_path,
                c.doc_title AS doc_title,
                c.section_title AS section_title,
                c.content AS content,
                c.tokens AS tokens,
                -bm25(chunks_fts) AS score
            FROM chunks_fts
            JOIN chunks c ON c.id = chunks_fts.rowid
            WHERE chunks_fts MATCH ?
            ORDER BY score DESC, c.id ASC
            """,
            (match_query,),
        ).fetchall()
        return [dict(row) for row in rows]
