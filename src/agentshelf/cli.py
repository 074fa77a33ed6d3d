"""Command line interface for AgentShelf."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agentshelf.config import AppConfig
from agentshelf.index.ranking import TOKEN_BUDGET
from agentshelf.index.search import search, search_all
from agentshelf.index.store import PackageStore, load_packages

console = Console()
# Status output for `serve` must stay off stdout, which carries the MCP stream
err_console = Console(stderr=True)
app = typer.Typer(help="AgentShelf - local documentation lookup for coding agents")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_store(config: AppConfig) -> tuple[PackageStore, Path]:
    resolved = config.resolve_packages_dir(Path.cwd())
    return load_packages(resolved), resolved


def _require_packages_dir(config: AppConfig) -> tuple[PackageStore, Path]:
    store, resolved = _load_store(config)
    if not resolved.is_dir():
        raise typer.BadParameter(f"Packages directory not found: {resolved}")
    return store, resolved


def _tokens_line(used: int, budget: int) -> str:
    return f"Tokens: {used} / {budget}"


@app.command("list")
def list_packages(
    packages_dir: Path = typer.Option(None, "--packages-dir", help="Directory with package databases"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List installed documentation packages."""
    _setup_logging(verbose)
    store, resolved = _load_store(AppConfig(packages_dir=packages_dir))
    packages = store.list()
    if not packages:
        console.print(f"[yellow]No packages installed in {resolved}.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Library", no_wrap=True)
    table.add_column("Sections", justify="right")
    table.add_column("Description")
    for pkg in packages:
        table.add_row(pkg.library, str(pkg.section_count), pkg.description)
    console.print(table)


@app.command()
def query(
    library: str = typer.Argument(..., help="Package name or name@version"),
    topic: str = typer.Argument(..., help="What to look up"),
    packages_dir: Path = typer.Option(None, "--packages-dir", help="Directory with package databases"),
    token_budget: int = typer.Option(TOKEN_BUDGET, "--token-budget", min=1, help="Maximum tokens returned per query"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the documentation of a single package."""
    _setup_logging(verbose)
    config = AppConfig(packages_dir=packages_dir, token_budget=token_budget)
    store, _ = _require_packages_dir(config)

    name = library.rsplit("@", 1)[0] if library.rfind("@") > 0 else library
    info = store.get(name)
    if info is None or (name != library and info.library != library):
        raise typer.BadParameter(f"Package not found: {library}")

    db = store.open_db(info.name)
    if db is None:
        raise typer.BadParameter(f"Failed to open package database: {info.library}")
    try:
        with db:
            result = search(db, topic, token_budget=config.token_budget)
    except sqlite3.DatabaseError as exc:
        raise typer.BadParameter(f"Failed to read package database: {info.library} ({exc})") from exc

    if not result.results:
        console.print(f"[yellow]No results in {result.library}. Try different keywords.[/yellow]")
        return

    console.print(f"[bold]{len(result.results)} results in {result.library}[/bold]")
    for snippet in result.results:
        console.rule(f"{escape(snippet.title)}  [dim]{escape(snippet.source)}[/dim]")
        console.print(snippet.content, markup=False)
    console.print(_tokens_line(result.tokens_used, config.token_budget))


@app.command("search")
def search_command(
    topic: str = typer.Argument(..., help="What to look up"),
    packages_dir: Path = typer.Option(None, "--packages-dir", help="Directory with package databases"),
    token_budget: int = typer.Option(TOKEN_BUDGET, "--token-budget", min=1, help="Maximum tokens returned per query"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search across all installed packages."""
    _setup_logging(verbose)
    config = AppConfig(packages_dir=packages_dir, token_budget=token_budget)
    store, _ = _require_packages_dir(config)

    result = search_all(store, topic, token_budget=config.token_budget)
    if not result.results:
        console.print(
            f"[yellow]No results found across {len(store)} libraries. "
            "Try broader keywords.[/yellow]"
        )
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score", no_wrap=True)
    table.add_column("Library", no_wrap=True)
    table.add_column("Title")
    table.add_column("Snippet")
    for entry in result.results:
        snippet = entry.content.replace("\n", " ")
        table.add_row(f"{entry.score:.4f}", entry.library, entry.title, snippet[:180])
    console.print(table)
    console.print(_tokens_line(result.tokens_used, config.token_budget))


@app.command()
def serve(
    packages_dir: Path = typer.Option(None, "--packages-dir", help="Directory with package databases"),
    token_budget: int = typer.Option(TOKEN_BUDGET, "--token-budget", min=1, help="Maximum tokens returned per query"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Run the MCP server over stdio."""
    from agentshelf.server.mcp import run_stdio

    _setup_logging(verbose)
    config = AppConfig(packages_dir=packages_dir, token_budget=token_budget)
    store, resolved = _load_store(config)
    err_console.print(f"Serving {len(store)} packages from [bold]{resolved}[/bold] over stdio")
    run_stdio(store, token_budget=config.token_budget)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    packages_dir: Path = typer.Option(None, "--packages-dir", help="Directory with package databases"),
    token_budget: int = typer.Option(TOKEN_BUDGET, "--token-budget", min=1, help="Maximum tokens returned per query"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Start the HTTP interface."""
    _setup_logging(verbose)
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from agentshelf.web.app import create_app

    config = AppConfig(packages_dir=packages_dir, token_budget=token_budget)
    store, resolved = _load_store(config)
    if not len(store):
        console.print("[yellow]Warning: no packages installed, searches will be empty.[/yellow]")

    console.print(f"Starting web interface on http://{host}:{port} (packages: {resolved})")
    uvicorn.run(
        create_app(store, token_budget=config.token_budget),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
