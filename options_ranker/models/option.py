from __future__ import annotations

import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _is_blank(value: Any) -> bool:
    if value is None or value == "":
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return False


def _finite_int(value: Any) -> int:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError("expected a finite number")
    return int(number)


class SkipReason(str, Enum):
    """Why a symbol produced no candidates in a ranking pass."""

    DATA_UNAVAILABLE = "data_unavailable"
    INVALID_CHAIN = "invalid_chain"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    ERROR = "error"


class Quote(BaseModel):
    """Underlying quote as reported by a market data provider."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    price: Optional[float] = Field(default=None, alias="regularMarketPrice")
    previous_close: Optional[float] = Field(default=None, alias="previousClose")
    volume: int = 0

    @field_validator("price", "previous_close", mode="before")
    @classmethod
    def coerce_price(cls, value: Any) -> Optional[float]:
        if _is_blank(value):
            return None
        return float(value)

    @field_validator("volume", mode="before")
    @classmethod
    def coerce_volume(cls, value: Any) -> int:
        return 0 if _is_blank(value) else _finite_int(value)

    @property
    def resolved_price(self) -> Optional[float]:
        for candidate in (self.price, self.previous_close):
            if candidate is not None and math.isfinite(candidate) and candidate > 0:
                return candidate
        return None


class OptionContract(BaseModel):
    """Single call or put as consumed by the strategy analyzers."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    strike: float = Field(ge=0)
    last_price: float = Field(alias="lastPrice", ge=0)
    bid: Optional[float] = None
    ask: Optional[float] = None
    volume: int = Field(default=0, ge=0)
    open_interest: int = Field(default=0, alias="openInterest", ge=0)
    implied_volatility: float = Field(default=0.0, alias="impliedVolatility")

    @field_validator("volume", "open_interest", mode="before")
    @classmethod
    def coerce_int(cls, value: Any) -> int:
        return 0 if _is_blank(value) else max(_finite_int(value), 0)

    @field_validator("implied_volatility", mode="before")
    @classmethod
    def coerce_float(cls, value: Any) -> float:
        return 0.0 if _is_blank(value) else float(value)

    @field_validator("bid", "ask", mode="before")
    @classmethod
    def coerce_optional(cls, value: Any) -> Optional[float]:
        if _is_blank(value):
            return None
        return float(value)

    @property
    def iv_pct(self) -> float:
        """Implied volatility in percent, assuming 30% when the provider reports none."""

        return (self.implied_volatility or 0.3) * 100


class Chain(BaseModel):
    """Normalized options chain for one symbol and its nearest expiration."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    stock_price: float = Field(gt=0)
    expiration: date
    days_to_expiry: int = Field(gt=0, le=365)
    calls: Tuple[OptionContract, ...] = ()
    puts: Tuple[OptionContract, ...] = ()
    synthetic: bool = False
    as_of: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChainRejection(BaseModel):
    """Signal that a provider snapshot could not be turned into a ``Chain``."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    reason: SkipReason
    detail: str = ""
