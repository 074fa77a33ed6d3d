"""AgentShelf MCP server."""

# Tool signatures are built at runtime, so annotations must stay real objects
# (no postponed evaluation in this module).

import logging
from typing import Annotated, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from agentshelf.formatting import to_json
from agentshelf.index.ranking import TOKEN_BUDGET
from agentshelf.index.store import PackageStore
from agentshelf.server import tools

LOGGER = logging.getLogger(__name__)

SERVER_NAME = "agentshelf"

TOPIC_DESCRIPTION = (
    "What you need help with (e.g., 'middleware authentication', 'server components')"
)


def create_server(store: PackageStore, *, token_budget: int = TOKEN_BUDGET) -> FastMCP:
    """Build the MCP server; tools are only registered when packages exist."""
    server = FastMCP(SERVER_NAME)

    packages = store.list()
    if not packages:
        LOGGER.warning("No documentation packages installed; no tools registered")
        return server

    libraries = tuple(pkg.library for pkg in packages)
    LibraryName = Annotated[
        Literal[libraries],  # type: ignore[valid-type]
        Field(description="The library to search (name@version)"),
    ]
    Topic = Annotated[str, Field(description=TOPIC_DESCRIPTION)]

    @server.tool(name="get_docs", description=tools.GET_DOCS_DESCRIPTION)
    def get_docs(library: LibraryName, topic: Topic) -> str:
        return to_json(tools.get_docs(store, library, topic, token_budget=token_budget))

    @server.tool(name="search_all", description=tools.SEARCH_ALL_DESCRIPTION)
    def search_all(topic: Topic) -> str:
        return to_json(tools.search_all_docs(store, topic, token_budget=token_budget))

    LOGGER.info("Registered tools for %d packages: %s", len(libraries), ", ".join(libraries))
    return server


def run_stdio(store: PackageStore, *, token_budget: int = TOKEN_BUDGET) -> None:
    create_server(store, token_budget=token_budget).run(transport="stdio")
