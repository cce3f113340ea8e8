"""Serialization helpers shared between the CLI and the API."""

from __future__ import annotations

from typing import Any, Dict, List

from .recommendation import RankingResult, Recommendation


def serialize_recommendation(recommendation: Recommendation) -> Dict[str, Any]:
    """Return a JSON-compatible, camelCase representation of a recommendation."""

    return recommendation.model_dump(mode="json", by_alias=True)


def serialize_ranking_result(result: RankingResult) -> Dict[str, Any]:
    """Return a JSON-compatible payload for a ranking pass."""

    return result.model_dump(mode="json", by_alias=True)


def recommendation_rows(recommendations: List[Recommendation]) -> List[Dict[str, Any]]:
    """Flatten recommendations into rows suitable for a ``pandas.DataFrame``."""

    rows: List[Dict[str, Any]] = []
    for rec in recommendations:
        rows.append(
            {
                "rank": rec.rank,
                "symbol": rec.symbol,
                "strategy": rec.strategy.value,
                "stock": round(rec.stock_price, 2),
                "strike": round(rec.strike_price, 2),
                "premium": round(rec.premium, 2),
                "expiry": rec.expiration_date.isoformat(),
                "dte": rec.days_to_expiry,
                "iv%": round(rec.implied_volatility_pct, 1),
                "return%": round(rec.return_on_capital_pct, 2),
                "annual%": round(rec.annualized_return_pct, 1),
                "risk": rec.risk_level.value,
                "score": rec.score,
                "synthetic": rec.synthetic,
            }
        )
    return rows


__all__ = [
    "recommendation_rows",
    "serialize_ranking_result",
    "serialize_recommendation",
]
