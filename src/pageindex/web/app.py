"""FastAPI application exposing indexing and search over HTTP."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from pageindex.config import AppConfig
from pageindex.index.indexer import Indexer, IndexingError
from pageindex.index.search import Searcher
from pageindex.index.storage import JSONCorpusStore, StoreError
from pageindex.ingestion.fetcher import FetchError, Fetcher
from pageindex.models import RankedDocument
from pageindex.utils.files import iter_urls

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="PageIndex", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
# Index used when a request names none; set by `pageindex web --index`.
app.state.index_path = None


class SearchPayload(BaseModel):
    query: str
    index: Path | None = None
    top_k: int = 10
    by_score: bool = True


class IndexPayload(BaseModel):
    urls: List[str]
    index: str | None = None
    selectors: List[str] = []
    dedupe: bool | None = None
    keep_going: bool = False


def _resolve_index_path(index: Path | None) -> Path:
    config = AppConfig(index_path=index if index is not None else app.state.index_path)
    return config.resolve_index_path(Path.cwd())


def _ensure_index_parent(index_path: Path) -> None:
    index_path.parent.mkdir(parents=True, exist_ok=True)


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/search")
async def search_documents(payload: SearchPayload) -> dict[str, List[RankedDocument]]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    top_k = max(1, min(payload.top_k, 100))
    resolved_index = _resolve_index_path(payload.index)
    if not resolved_index.exists():
        raise HTTPException(
            status_code=404,
            detail=f"Index not found at {resolved_index}. Index some URLs first.",
        )

    searcher = Searcher(JSONCorpusStore(resolved_index))
    try:
        results = searcher.search(query, top_k=top_k, by_score=payload.by_score)
    except StoreError as exc:
        LOGGER.error("Search failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"results": results}


@app.get("/documents")
async def list_documents(index: Path | None = None) -> dict[str, Any]:
    """List every stored record with corpus statistics."""
    resolved_index = _resolve_index_path(index)
    store = JSONCorpusStore(resolved_index)
    try:
        documents = store.list_documents()
        stats = store.stats()
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return {"documents": documents, "stats": asdict(stats)}


def _run_index_job(urls: List[str], config: AppConfig, resolved_index: Path) -> dict[str, Any]:
    store = JSONCorpusStore(resolved_index, dedupe=config.dedupe)
    with Fetcher(timeout=config.timeout, user_agent=config.user_agent) as fetcher:
        indexer = Indexer(
            fetcher,
            store,
            selectors=config.selectors,
            stop_on_error=config.stop_on_error,
        )
        stats = indexer.index(urls)

    return {
        "indexed": stats.indexed,
        "failed": stats.failed,
        "processed_urls": stats.processed_urls,
        "failures": stats.failures,
    }


@app.post("/index")
async def index_urls(payload: IndexPayload) -> dict[str, Any]:
    urls = list(iter_urls(payload.urls))
    if not urls:
        raise HTTPException(status_code=400, detail="No valid URL provided")

    resolved_index = _resolve_index_path(Path(payload.index) if payload.index is not None else None)
    defaults = AppConfig()
    config = AppConfig(
        index_path=resolved_index,
        selectors=tuple(payload.selectors),
        dedupe=defaults.dedupe if payload.dedupe is None else payload.dedupe,
        stop_on_error=not payload.keep_going,
    )
    _ensure_index_parent(resolved_index)

    try:
        stats = await asyncio.to_thread(_run_index_job, urls, config, resolved_index)
    except IndexingError as exc:
        LOGGER.error("Indexing failed: %s", exc)
        status = 502 if isinstance(exc.cause, FetchError) else 500
        raise HTTPException(status_code=status, detail=str(exc)) from exc

    return {"status": "ok", "index": str(resolved_index), "stats": stats}
