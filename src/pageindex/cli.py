"""Command line interface for PageIndex."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pageindex.config import AppConfig
from pageindex.index.indexer import Indexer, IndexingError
from pageindex.index.search import Searcher
from pageindex.index.storage import JSONCorpusStore, StoreError
from pageindex.ingestion.fetcher import Fetcher
from pageindex.utils.files import iter_urls, load_urls
from pageindex.web.app import app as web_app


console = Console()
app = typer.Typer(help="PageIndex - crawl pages and search them with TF-IDF")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_index_parent(index_path: Path) -> None:
    index_path.parent.mkdir(parents=True, exist_ok=True)


def _resolve_index(index_path: Optional[Path]) -> Path:
    config = AppConfig(index_path=index_path)
    return config.resolve_index_path(Path.cwd())


@app.command()
def index(
    urls: Optional[List[str]] = typer.Argument(None, help="URLs to crawl and index."),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="File with one URL per line.", exists=True, dir_okay=False
    ),
    index_path: Optional[Path] = typer.Option(None, "--index", help="JSON index file path"),
    selector: Optional[List[str]] = typer.Option(
        None, "--selector", "-s", help="CSS selector whose text is indexed (repeatable)"
    ),
    timeout: float = typer.Option(AppConfig().timeout, help="Request timeout in seconds"),
    dedupe: bool = typer.Option(
        AppConfig().dedupe, "--dedupe", help="Replace earlier records for the same URL"
    ),
    keep_going: bool = typer.Option(
        False, "--keep-going", help="Log failed URLs and continue instead of aborting"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Fetch URLs and append their statistics to the index."""
    _setup_logging(verbose)
    config = AppConfig(
        index_path=index_path,
        selectors=tuple(selector or ()),
        timeout=timeout,
        dedupe=dedupe,
        stop_on_error=not keep_going,
    )

    targets = list(iter_urls(urls or []))
    if file is not None:
        targets.extend(load_urls(file))
    if not targets:
        console.print("[yellow]No URLs to index.[/yellow]")
        return

    resolved_index = config.resolve_index_path(Path.cwd())
    _ensure_index_parent(resolved_index)
    store = JSONCorpusStore(resolved_index, dedupe=config.dedupe)
    console.print(f"Indexing {len(targets)} URL(s) into [bold]{resolved_index}[/bold]...")

    with Fetcher(timeout=config.timeout, user_agent=config.user_agent) as fetcher:
        indexer = Indexer(
            fetcher,
            store,
            selectors=config.selectors,
            stop_on_error=config.stop_on_error,
        )
        try:
            stats = indexer.index(targets)
        except IndexingError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")
            raise typer.Exit(code=1) from exc

    console.print(f"Indexed: {stats.indexed}, failed: {stats.failed}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    index_path: Optional[Path] = typer.Option(None, "--index", help="JSON index file path"),
    top_k: int = typer.Option(10, help="Number of results to display"),
    show_all: bool = typer.Option(
        False, "--all", help="Show every document in corpus order instead of the top matches"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rank indexed pages against a query."""
    _setup_logging(verbose)
    resolved_index = _resolve_index(index_path)

    if not resolved_index.exists():
        raise typer.BadParameter(f"Index not found: {resolved_index}")

    searcher = Searcher(JSONCorpusStore(resolved_index))
    try:
        if show_all:
            results = searcher.search(query)
        else:
            results = searcher.search(query, top_k=top_k, by_score=True)
    except StoreError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("URL")
    table.add_column("Term weights")

    for result in results:
        weights = ", ".join(f"{term}={weight:.4f}" for term, weight in result.term_weights.items())
        table.add_row(f"{result.score:.4f}", result.source_url, weights)

    console.print(table)


@app.command()
def stats(
    index_path: Optional[Path] = typer.Option(None, "--index", help="JSON index file path"),
) -> None:
    """Show corpus statistics."""
    resolved_index = _resolve_index(index_path)
    if not resolved_index.exists():
        console.print("[yellow]Index not found, nothing indexed yet.[/yellow]")
        return

    try:
        corpus_stats = JSONCorpusStore(resolved_index).stats()
    except StoreError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(
        f"Documents: {corpus_stats.document_count}, "
        f"unique URLs: {corpus_stats.unique_urls}, "
        f"tokens: {corpus_stats.total_tokens}"
    )


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    index_path: Optional[Path] = typer.Option(None, "--index", help="JSON index file path"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - optional extra
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    resolved_index = _resolve_index(index_path)
    if not resolved_index.exists():
        console.print("[yellow]Warning: index not found, searches will return nothing.[/yellow]")
    web_app.state.index_path = resolved_index

    console.print(f"Starting API on http://{host}:{port} (index: {resolved_index})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
