"""FastAPI application exposing ranked option strategies."""

from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query

from options_ranker.config import get_settings
from options_ranker.models import RankingMode, serialize_ranking_result
from options_ranker.scanner import ActiveSymbolSource, RecommendationRanker, build_ranker, get_market_status

logger = logging.getLogger(__name__)

app = FastAPI(title="Options Strategy Ranker API", version="1.0.0")


@lru_cache(maxsize=1)
def get_ranker() -> RecommendationRanker:
    """Shared ranker; override with ``app.dependency_overrides`` in tests."""

    return build_ranker(get_settings())


@lru_cache(maxsize=1)
def get_symbol_source() -> ActiveSymbolSource:
    settings = get_settings()
    return ActiveSymbolSource(settings.universe, watchlist=settings.get_watchlist())


def _parse_symbols(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [token.strip().upper() for token in raw.split(",") if token.strip()]


@app.get("/recommendations")
def get_recommendations(
    symbols: Optional[str] = Query(default=None, description="Comma separated symbols"),
    mode: Optional[RankingMode] = Query(default=None),
    top_k: Optional[int] = Query(default=None, ge=1),
    ranker: RecommendationRanker = Depends(get_ranker),
    symbol_source: ActiveSymbolSource = Depends(get_symbol_source),
    client_id: Optional[str] = Header(default=None, alias="X-Client-Id"),
) -> Dict[str, Any]:
    """Rank strategies for the requested symbols or the active universe.

    A newer request carrying the same ``X-Client-Id`` supersedes an in-flight
    one. Requests without the header never supersede each other.
    """

    requested = _parse_symbols(symbols)
    universe = requested or symbol_source.get_symbols().symbols
    try:
        result = ranker.rank(universe, mode=mode, top_k=top_k, supersede_key=client_id or uuid.uuid4().hex)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if result.superseded:
        logger.info("Ranking for %d symbols superseded by a newer request from %s", len(universe), client_id)
    return serialize_ranking_result(result)


@app.get("/symbols")
def list_symbols(symbol_source: ActiveSymbolSource = Depends(get_symbol_source)) -> Dict[str, Any]:
    snapshot = symbol_source.get_symbols()
    return {
        "symbols": snapshot.symbols,
        "source": snapshot.source,
        "expiresAt": snapshot.expires_at.isoformat(),
    }


@app.get("/market-status")
def read_market_status() -> Dict[str, Any]:
    return get_market_status().model_dump(mode="json", by_alias=True)


__all__ = ["app", "get_ranker", "get_symbol_source"]
