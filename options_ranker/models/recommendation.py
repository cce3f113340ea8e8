from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Strategy(str, Enum):
    SELL_PUT = "Sell Put"
    SELL_CALL = "Sell Call"
    BUY_CALL = "Buy Call"
    BUY_PUT = "Buy Put"
    COVERED_CALL = "Covered Call"
    BULL_CALL_SPREAD = "Bull Call Spread"


STRATEGY_ORDER: List[Strategy] = list(Strategy)


class RiskLevel(str, Enum):
    LOW = "Low"
    LOW_TO_MEDIUM = "Low to Medium"
    MEDIUM = "Medium"
    HIGH = "High"


class RankingMode(str, Enum):
    BEST_PER_SYMBOL = "best_per_symbol"
    TOP_PER_STRATEGY = "top_per_strategy"
    ALL = "all"


class MarketStatus(BaseModel):
    """US equity session state and what kind of prices a ranking reflects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    is_open: bool
    session: str
    message: str
    note: str
    checked_at: datetime


class Recommendation(BaseModel):
    """One ranked trade idea for a symbol and strategy.

    ``max_profit`` and ``max_loss`` are per contract; ``None`` means unlimited.
    ``score`` is only meaningful relative to other candidates in the same pass.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    symbol: str
    strategy: Strategy
    stock_price: float
    strike_price: float
    short_strike_price: Optional[float] = None
    premium: float
    total_premium: float
    bid: Optional[float] = None
    ask: Optional[float] = None
    expiration_date: date
    days_to_expiry: int
    volume: int
    open_interest: int
    implied_volatility_pct: float
    return_on_capital_pct: float
    annualized_return_pct: float
    break_even: float
    max_profit: Optional[float] = None
    max_loss: Optional[float] = None
    risk_level: RiskLevel
    narrative: str
    score: float = 0.0
    score_components: Dict[str, float] = Field(default_factory=dict)
    rank: Optional[int] = None
    synthetic: bool = False


class RankingResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recommendations: List[Recommendation] = Field(default_factory=list)
    mode: RankingMode
    evaluated_symbols: int = 0
    skipped: Dict[str, int] = Field(default_factory=dict)
    fallback_mode: bool = False
    superseded: bool = False
    market_status: Optional[MarketStatus] = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())
