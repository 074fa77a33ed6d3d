"""FastAPI application exposing the documentation lookup tools over HTTP."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from agentshelf.config import AppConfig
from agentshelf.index.ranking import TOKEN_BUDGET
from agentshelf.index.store import PackageStore, load_packages
from agentshelf.server import tools

LOGGER = logging.getLogger(__name__)


class GetDocsPayload(BaseModel):
    library: str
    topic: str


class SearchAllPayload(BaseModel):
    topic: str


def _resolve_packages_dir(packages_dir: Path | None) -> Path:
    config = AppConfig(packages_dir=packages_dir)
    return config.resolve_packages_dir(Path.cwd())


def _get_store(request: Request) -> PackageStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        packages_dir = _resolve_packages_dir(None)
        LOGGER.info("Loading packages from %s", packages_dir)
        store = load_packages(packages_dir)
        request.app.state.store = store
    return store


def create_app(
    store: PackageStore | None = None, *, token_budget: int = TOKEN_BUDGET
) -> FastAPI:
    """Create the HTTP app; without ``store`` packages load on first request."""
    web_app = FastAPI(title="AgentShelf", version="0.1.0")
    web_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    web_app.state.store = store
    web_app.state.token_budget = token_budget

    @web_app.get("/packages")
    def list_packages(request: Request) -> Dict[str, Any]:
        packages = _get_store(request).list()
        return {
            "packages": [
                {
                    "library": pkg.library,
                    "name": pkg.name,
                    "version": pkg.version,
                    "description": pkg.description,
                    "section_count": pkg.section_count,
                }
                for pkg in packages
            ]
        }

    # Sync handlers run in FastAPI's threadpool; the store is safe for concurrent readers
    @web_app.post("/get_docs")
    def get_docs(payload: GetDocsPayload, request: Request) -> Dict[str, Any]:
        return tools.get_docs(
            _get_store(request),
            payload.library,
            payload.topic,
            token_budget=request.app.state.token_budget,
        )

    @web_app.post("/search_all")
    def search_all(payload: SearchAllPayload, request: Request) -> Dict[str, Any]:
        return tools.search_all_docs(
            _get_store(request), payload.topic, token_budget=request.app.state.token_budget
        )

    return web_app


app = create_app()
