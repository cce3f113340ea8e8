from .option import Chain, ChainRejection, OptionContract, Quote, SkipReason
from .recommendation import (
    STRATEGY_ORDER,
    MarketStatus,
    RankingMode,
    RankingResult,
    Recommendation,
    RiskLevel,
    Strategy,
)
from .serialization import (
    recommendation_rows,
    serialize_ranking_result,
    serialize_recommendation,
)

__all__ = [
    "Chain",
    "ChainRejection",
    "MarketStatus",
    "OptionContract",
    "Quote",
    "RankingMode",
    "RankingResult",
    "Recommendation",
    "RiskLevel",
    "STRATEGY_ORDER",
    "SkipReason",
    "Strategy",
    "recommendation_rows",
    "serialize_ranking_result",
    "serialize_recommendation",
]
