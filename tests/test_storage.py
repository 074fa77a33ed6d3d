"""Tests for PackageDatabase."""

import sqlite3
from pathlib import Path

import pytest

from agentshelf.index.storage import PackageDatabase, build_chunk


@pytest.fixture
def temp_db(tmp_path):
    """Create a writable package database for testing."""
    db_path = tmp_path / "nextjs@15.0.db"
    db = PackageDatabase.create(db_path, name="nextjs", version="15.0", description="Next.js docs")
    yield db
    db.close()


def _fill(db: PackageDatabase) -> None:
    db.insert_chunks(
        [
            build_chunk(
                "docs/middleware.md",
                "Middleware",
                "Introduction",
                "Middleware allows you to run code before a request is completed.",
                50,
            ),
            build_chunk(
                "docs/routing.md",
                "Routing",
                "Basics",
                "Next.js uses a file-system based router.",
                30,
            ),
        ]
    )
    db.rebuild_fts_index()


class TestPackageDatabase:
    """Test PackageDatabase initialization and schema."""

    def test_create_writes_file(self, tmp_path):
        db_path = tmp_path / "new.db"
        assert not db_path.exists()

        db = PackageDatabase.create(db_path, name="koa", version="2.15.0")

        assert db_path.exists()
        assert db.db_path == db_path
        assert db.readonly is False
        db.close()

    def test_schema_creation(self, temp_db):
        conn = temp_db.connection
        for table in ("meta", "chunks", "chunks_fts"):
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,)
            )
            assert cursor.fetchone() is not None

    def test_meta(self, temp_db):
        assert temp_db.read_meta() == {
            "name": "nextjs",
            "version": "15.0",
            "description": "Next.js docs",
        }

    def test_set_meta_replaces(self, temp_db):
        temp_db.set_meta(version="15.1")
        assert temp_db.read_meta()["version"] == "15.1"

    def test_meta_read_once_per_handle(self, temp_db):
        """Should serve cached metadata without querying again."""
        assert temp_db.meta["name"] == "nextjs"

        statements = []
        temp_db.connection.set_trace_callback(statements.append)
        assert temp_db.meta["version"] == "15.0"
        temp_db.connection.set_trace_callback(None)

        assert statements == []

    def test_set_meta_refreshes_cache(self, temp_db):
        assert temp_db.meta["version"] == "15.0"

        temp_db.set_meta(version="15.1")

        assert temp_db.meta["version"] == "15.1"

    def test_readonly_missing_file(self, tmp_path):
        """Read-only handles never create files."""
        db_path = tmp_path / "missing.db"

        with pytest.raises(sqlite3.OperationalError):
            PackageDatabase(db_path)

        assert not db_path.exists()

    def test_readonly_rejects_writes(self, temp_db):
        _fill(temp_db)
        with PackageDatabase(temp_db.db_path) as db:
            with pytest.raises(sqlite3.OperationalError):
                db.set_meta(name="other")

    def test_context_manager_closes(self, temp_db):
        with PackageDatabase(temp_db.db_path) as db:
            conn = db.connection
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")

    def test_rejects_non_positive_tokens_column(self, temp_db):
        with pytest.raises(sqlite3.IntegrityError):
            temp_db.connection.execute(
                "INSERT INTO chunks(doc_path, doc_title, section_title, content, tokens)"
                " VALUES ('a', 'b', 'c', 'd', 0)"
            )


class TestTransaction:
    def test_rollback_on_exception(self, temp_db):
        with pytest.raises(ValueError):
            with temp_db.transaction() as conn:
                conn.execute("INSERT INTO meta(key, value) VALUES ('extra', 'x')")
                raise ValueError("Test error")

        assert "extra" not in temp_db.read_meta()


class TestChunks:
    def test_insert_and_count(self, temp_db):
        _fill(temp_db)
        assert temp_db.count_chunks() == 2

    def test_build_chunk_estimates_tokens(self):
        chunk = build_chunk("a.md", "A", "B", "x" * 42)
        assert chunk.tokens == 11

    def test_build_chunk_keeps_given_tokens(self):
        assert build_chunk("a.md", "A", "B", "short", 500).tokens == 500

    def test_build_chunk_rejects_zero_tokens(self):
        with pytest.raises(ValueError, match="positive"):
            build_chunk("a.md", "A", "B", "text", 0)


class TestMatch:
    """Test ranked full-text matching."""

    def test_match_returns_scored_rows(self, temp_db):
        _fill(temp_db)

        rows = temp_db.match('"middleware"')

        assert len(rows) == 1
        row = rows[0]
        assert row["doc_path"] == "docs/middleware.md"
        assert row["doc_title"] == "Middleware"
        assert row["section_title"] == "Introduction"
        assert row["tokens"] == 50
        assert row["score"] > 0

    def test_match_no_hits(self, temp_db):
        _fill(temp_db)
        assert temp_db.match('"graphql"') == []

    def test_empty_expression_skips_query(self, temp_db):
        assert temp_db.match("") == []

    def test_stemming(self, temp_db):
        """The porter tokenizer matches inflected forms."""
        _fill(temp_db)
        rows = temp_db.match('"routers"')
        assert [row["doc_path"] for row in rows] == ["docs/routing.md"]

    def test_rows_sorted_by_score(self, temp_db):
        temp_db.insert_chunks(
            [
                build_chunk("docs/a.md", "A", "One", "A long page that mentions cache once among many other words here.", 20),
                build_chunk("docs/b.md", "B", "Two", "Cache cache cache.", 5),
            ]
        )
        temp_db.rebuild_fts_index()

        rows = temp_db.match('"cache"')

        assert [row["doc_path"] for row in rows] == ["docs/b.md", "docs/a.md"]
        assert rows[0]["score"] >= rows[1]["score"]
