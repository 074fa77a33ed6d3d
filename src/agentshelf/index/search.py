"""Full-text search over one or all installed documentation packages."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import List

from agentshelf.index.ranking import (
    TOKEN_BUDGET,
    apply_token_budget,
    build_match_query,
    group_by_document,
    normalize_scores,
)
from agentshelf.index.storage import PackageDatabase
from agentshelf.index.store import PackageStore
from agentshelf.models import (
    DocSnippet,
    RankedDocument,
    SearchAllEntry,
    SearchAllResult,
    SearchResult,
)

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class _Candidate:
    library: str
    document: RankedDocument
    score: float
    rank: int
    order: int

    @property
    def tokens(self) -> int:
        return self.document.tokens


def rank_documents(db: PackageDatabase, query: str) -> List[RankedDocument]:
    """Rank documents for ``query`` without applying any token budget."""
    match_query = build_match_query(query)
    if not match_query:
        return []
    return group_by_document(db.match(match_query))


def search(db: PackageDatabase, query: str, *, token_budget: int = TOKEN_BUDGET) -> SearchResult:
    """Search one package, keeping one snippet per document within the budget."""
    meta = db.meta
    name = meta.get("name", "")
    version = meta.get("version", "")

    documents = apply_token_budget(rank_documents(db, query), token_budget)
    LOGGER.debug("Query %r on %s@%s returned %d documents", query, name, version, len(documents))
    return SearchResult(
        library=f"{name}@{version}",
        version=version,
        results=[
            DocSnippet(title=doc.title, content=doc.content, source=doc.source)
            for doc in documents
        ],
        tokens_used=sum(doc.tokens for doc in documents),
    )


def search_all(
    store: PackageStore, query: str, *, token_budget: int = TOKEN_BUDGET
) -> SearchAllResult:
    """Search every installed package and merge the results.

    Scores are normalized per library by that library's own best match, then
    all candidates share a single token budget.
    """
    if not build_match_query(query):
        return SearchAllResult()

    candidates: List[_Candidate] = []
    for order, info in enumerate(store.list()):
        db = store.open_db(info.name)
        if db is None:
            LOGGER.warning("Skipping %s: package database unavailable", info.library)
            continue
        try:
            documents = rank_documents(db, query)
        except sqlite3.DatabaseError as exc:
            LOGGER.warning("Skipping %s: search failed: %s", info.library, exc)
            continue
        finally:
            db.close()

        if not documents:
            continue

        normalized = normalize_scores([doc.score for doc in documents])
        for rank, (doc, score) in enumerate(zip(documents, normalized)):
            candidates.append(
                _Candidate(
                    library=info.library,
                    document=doc,
                    score=float(score),
                    rank=rank,
                    order=order,
                )
            )

    candidates.sort(key=lambda c: (-c.score, c.rank, c.order))
    selected = apply_token_budget(candidates, token_budget)
    LOGGER.debug(
        "Query %r across %d packages: %d candidates, %d returned",
        query,
        len(store),
        len(candidates),
        len(selected),
    )
    return SearchAllResult(
        results=[
            SearchAllEntry(
                library=c.library,
                title=c.document.title,
                content=c.document.content,
                source=c.document.source,
                score=c.score,
            )
            for c in selected
        ],
        tokens_used=sum(c.tokens for c in selected),
    )
