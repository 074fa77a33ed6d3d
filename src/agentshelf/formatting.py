"""Transport-neutral payloads for search results."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict

from agentshelf.models import SearchAllResult, SearchResult

NO_DOCS_MESSAGE = "No documentation found. Try different keywords."
NO_DOCS_ANYWHERE_MESSAGE = (
    "No documentation found in any installed package. "
    "Try broader keywords or check installed packages."
)


def search_result_payload(result: SearchResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "library": result.library,
        "version": result.version,
        "results": [asdict(snippet) for snippet in result.results],
    }
    if not result.results:
        payload["message"] = NO_DOCS_MESSAGE
    return payload


def search_all_payload(result: SearchAllResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"results": [asdict(entry) for entry in result.results]}
    if not result.results:
        payload["message"] = NO_DOCS_ANYWHERE_MESSAGE
    return payload


def error_payload(message: str) -> Dict[str, str]:
    return {"error": message}


def to_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False)
