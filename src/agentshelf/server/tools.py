"""Protocol-independent handlers behind the get_docs and search_all tools."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict

from agentshelf.formatting import error_payload, search_all_payload, search_result_payload
from agentshelf.index.ranking import TOKEN_BUDGET
from agentshelf.index.search import search, search_all
from agentshelf.index.store import PackageStore

LOGGER = logging.getLogger(__name__)

GET_DOCS_DESCRIPTION = (
    "Provides the latest official documentation for installed libraries. "
    "Use this as your primary reference when working with library APIs - it contains "
    "current, version-specific information that may be more accurate than training data "
    "or web searches. Covers API signatures, usage patterns, and best practices. "
    "Instant local lookup, no network needed."
)

SEARCH_ALL_DESCRIPTION = (
    "Search across ALL installed documentation packages for a topic. Use when you don't "
    "know which library has the answer, or when a topic may span multiple libraries. "
    "Returns the most relevant results from any installed package, ranked by relevance."
)


def get_docs(
    store: PackageStore, library: str, topic: str, *, token_budget: int = TOKEN_BUDGET
) -> Dict[str, Any]:
    """Look up ``topic`` in the package identified as ``name@version``."""
    info = next((pkg for pkg in store.list() if pkg.library == library), None)
    if info is None:
        LOGGER.info("get_docs: unknown library %s", library)
        return error_payload(f"Package not found: {library}")

    db = store.open_db(info.name)
    if db is None:
        return error_payload(f"Failed to open package database: {library}")

    try:
        with db:
            result = search(db, topic, token_budget=token_budget)
    except sqlite3.DatabaseError as exc:
        LOGGER.warning("get_docs: search failed for %s: %s", library, exc)
        return error_payload(f"Failed to read package database: {library}")
    return search_result_payload(result)


def search_all_docs(
    store: PackageStore, topic: str, *, token_budget: int = TOKEN_BUDGET
) -> Dict[str, Any]:
    return search_all_payload(search_all(store, topic, token_budget=token_budget))
