"""US equity session status shown alongside a ranking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import pandas as pd

from options_ranker.models import MarketStatus

MARKET_TIMEZONE = "America/New_York"
MARKET_OPEN_MINUTES = 9 * 60 + 30
MARKET_CLOSE_MINUTES = 16 * 60


def get_market_status(now: Optional[datetime] = None) -> MarketStatus:
    """Classify ``now`` as open, pre-market, after-hours or weekend (US/Eastern).

    Holidays are not modelled.
    """

    checked_at = now or datetime.now(timezone.utc)
    if checked_at.tzinfo is None:
        checked_at = checked_at.replace(tzinfo=timezone.utc)
    eastern = pd.Timestamp(checked_at).tz_convert(MARKET_TIMEZONE)
    minutes = eastern.hour * 60 + eastern.minute

    if eastern.dayofweek >= 5:
        return MarketStatus(
            is_open=False,
            session="weekend",
            message="Market Closed (Weekend)",
            note="Showing closing prices from Friday's final trading period",
            checked_at=checked_at,
        )
    if MARKET_OPEN_MINUTES <= minutes < MARKET_CLOSE_MINUTES:
        return MarketStatus(
            is_open=True,
            session="regular",
            message="Market Open",
            note="Displaying live prices",
            checked_at=checked_at,
        )
    if minutes < MARKET_OPEN_MINUTES:
        return MarketStatus(
            is_open=False,
            session="pre_market",
            message="Market Closed (Pre-Market)",
            note="Showing closing prices from the previous trading day",
            checked_at=checked_at,
        )
    return MarketStatus(
        is_open=False,
        session="after_hours",
        message="Market Closed (After-Hours)",
        note="Showing closing prices from today's final trading period",
        checked_at=checked_at,
    )


__all__ = ["MARKET_TIMEZONE", "get_market_status"]
