"""Symbol universe, market session and ranking pipeline."""

from .market_hours import get_market_status
from .ranker import RecommendationRanker, build_ranker, select_recommendations
from .universe import FALLBACK_SYMBOLS, ActiveSymbolSource, UniverseSnapshot, normalise_symbols, screen_quotes

__all__ = [
    "ActiveSymbolSource",
    "FALLBACK_SYMBOLS",
    "RecommendationRanker",
    "UniverseSnapshot",
    "build_ranker",
    "get_market_status",
    "normalise_symbols",
    "screen_quotes",
    "select_recommendations",
]
