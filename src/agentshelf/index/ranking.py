"""Ranking helpers shared by single-library and cross-library search."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence, TypeVar

import numpy as np

from agentshelf.models import RankedDocument

TOKEN_BUDGET = 2000
CHARS_PER_TOKEN = 4

_TERM_RE = re.compile(r"[^\W_]+")

T = TypeVar("T")


def build_match_query(query: str) -> str:
    """Turn free text into a safe FTS5 MATCH expression.

    Every word is quoted as a string literal and the terms are OR-ed together,
    so operators, parentheses and stray quotes never reach the FTS5 parser.
    Returns an empty string when the text holds no searchable terms.
    """
    seen: set[str] = set()
    terms: List[str] = []
    for term in _TERM_RE.findall(query or ""):
        key = term.lower()
        if key in seen:
            continue
        seen.add(key)
        terms.append(f'"{term}"')
    return " OR ".join(terms)


def format_title(doc_title: str, section_title: str) -> str:
    if not section_title:
        return doc_title
    return f"{doc_title} > {section_title}"


def group_by_document(rows: Iterable[dict]) -> List[RankedDocument]:
    """Keep the best-scoring chunk of each source document.

    ``rows`` must arrive ordered by score descending, storage order ascending;
    the first row seen for a document is its representative.
    """
    best: dict[str, RankedDocument] = {}
    for row in rows:
        source = row["doc_path"]
        if source in best:
            continue
        best[source] = RankedDocument(
            source=source,
            title=format_title(row["doc_title"], row["section_title"]),
            content=row["content"],
            tokens=int(row["tokens"]),
            score=max(float(row["score"]), 0.0),
        )
    # sorted() is stable, so equal scores keep storage order
    return sorted(best.values(), key=lambda doc: doc.score, reverse=True)


def apply_token_budget(items: Sequence[T], budget: int = TOKEN_BUDGET) -> List[T]:
    """Take items in order until the next one would overflow ``budget``.

    The overflowing item is dropped whole and the walk stops there.
    """
    selected: List[T] = []
    used = 0
    for item in items:
        tokens = item.tokens  # type: ignore[attr-defined]
        if used + tokens > budget:
            break
        used += tokens
        selected.append(item)
    return selected


def normalize_scores(scores: Sequence[float]) -> np.ndarray:
    """Scale one library's raw scores onto [0, 1] by its own maximum."""
    values = np.asarray(scores, dtype="float64")
    if values.size == 0:
        return values
    values = np.clip(values, 0.0, None)
    peak = values.max()
    if peak <= 0.0:
        return np.ones_like(values)
    return np.clip(values / peak, 0.0, 1.0)
