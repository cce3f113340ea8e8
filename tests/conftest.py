from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from options_ranker.config import reset_settings_cache
from options_ranker.models import OptionContract, Recommendation, RiskLevel, Strategy

EXPIRY = date(2025, 2, 5)


@pytest.fixture(autouse=True)
def clear_caches():
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def make_contract() -> Callable[..., OptionContract]:
    def factory(strike: float, price: float, volume: int = 500, iv: float = 0.25, open_interest: int = 100) -> OptionContract:
        return OptionContract(
            strike=strike,
            last_price=price,
            volume=volume,
            open_interest=open_interest,
            implied_volatility=iv,
        )

    return factory


@pytest.fixture
def make_recommendation() -> Callable[..., Recommendation]:
    def factory(**overrides: Any) -> Recommendation:
        fields: dict[str, Any] = {
            "symbol": "XYZ",
            "strategy": Strategy.SELL_PUT,
            "stock_price": 200.0,
            "strike_price": 190.0,
            "premium": 3.0,
            "total_premium": 300.0,
            "expiration_date": EXPIRY,
            "days_to_expiry": 30,
            "volume": 500,
            "open_interest": 100,
            "implied_volatility_pct": 25.0,
            "return_on_capital_pct": 1.5789,
            "annualized_return_pct": 19.21,
            "break_even": 187.0,
            "max_profit": 300.0,
            "max_loss": 18700.0,
            "risk_level": RiskLevel.MEDIUM,
            "narrative": "test",
        }
        fields.update(overrides)
        return Recommendation(**fields)

    return factory
