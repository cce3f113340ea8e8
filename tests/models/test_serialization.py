from __future__ import annotations

from options_ranker.models import (
    RankingMode,
    RankingResult,
    Strategy,
    recommendation_rows,
    serialize_ranking_result,
    serialize_recommendation,
)


def test_recommendation_serializes_with_camel_case_keys(make_recommendation):
    payload = serialize_recommendation(make_recommendation(strategy=Strategy.COVERED_CALL, max_profit=None))

    assert payload["strategy"] == "Covered Call"
    assert payload["stockPrice"] == 200.0
    assert payload["expirationDate"] == "2025-02-05"
    assert payload["maxProfit"] is None
    assert payload["riskLevel"] == "Medium"


def test_ranking_result_payload(make_recommendation):
    result = RankingResult(
        recommendations=[make_recommendation(rank=1)],
        mode=RankingMode.TOP_PER_STRATEGY,
        evaluated_symbols=3,
        skipped={"timeout": 2},
    )

    payload = serialize_ranking_result(result)

    assert payload["mode"] == "top_per_strategy"
    assert payload["skipped"] == {"timeout": 2}
    assert payload["fallbackMode"] is False
    assert result.skipped_total == 2
    assert payload["recommendations"][0]["rank"] == 1


def test_recommendation_rows_are_display_ready(make_recommendation):
    rows = recommendation_rows([make_recommendation(rank=1, score=12.345)])

    assert rows == [
        {
            "rank": 1,
            "symbol": "XYZ",
            "strategy": "Sell Put",
            "stock": 200.0,
            "strike": 190.0,
            "premium": 3.0,
            "expiry": "2025-02-05",
            "dte": 30,
            "iv%": 25.0,
            "return%": 1.58,
            "annual%": 19.2,
            "risk": "Medium",
            "score": 12.345,
            "synthetic": False,
        }
    ]
