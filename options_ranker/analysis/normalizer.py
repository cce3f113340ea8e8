"""Turn provider snapshots into validated ``Chain`` objects.

Rejections are returned as ``ChainRejection`` values rather than raised:
a stale or empty chain is an expected outcome of a market scan.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd
from pydantic import ValidationError

from options_ranker.adapters.base import OptionsChain
from options_ranker.models import Chain, ChainRejection, OptionContract, SkipReason

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
MAX_DAYS_TO_EXPIRY = 365

ContractRows = Union[pd.DataFrame, Sequence[Mapping[str, Any]], None]


def _number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _records(rows: ContractRows) -> List[Mapping[str, Any]]:
    if rows is None:
        return []
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict("records") if not rows.empty else []
    return list(rows)


def to_expiration_datetime(raw: Any) -> Optional[datetime]:
    """Interpret a provider expiration (epoch seconds, date, datetime or ISO string) as UTC."""

    if isinstance(raw, pd.Timestamp):
        raw = raw.to_pydatetime()
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min, tzinfo=timezone.utc)
    if isinstance(raw, str):
        try:
            return to_expiration_datetime(datetime.fromisoformat(raw))
        except ValueError:
            return None
    seconds = _number(raw)
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        # Millisecond epochs and other out-of-range values.
        return None


def days_until(expiration: datetime, now: datetime) -> int:
    return math.ceil((expiration - now).total_seconds() / SECONDS_PER_DAY)


def normalize_contract(row: Mapping[str, Any]) -> Optional[OptionContract]:
    """Build a contract from a provider row, or ``None`` if it cannot be priced."""

    strike = _number(row.get("strike"))
    if strike is None or strike < 0:
        return None

    bid = _number(row.get("bid"))
    ask = _number(row.get("ask"))
    last_price = _number(row.get("lastPrice", row.get("last_price")))
    # lastPrice falls back to the bid (what a seller would collect), then the ask.
    for candidate in (last_price, bid, ask):
        if candidate is not None and candidate > 0:
            resolved = candidate
            break
    else:
        return None

    try:
        return OptionContract(
            strike=strike,
            last_price=resolved,
            bid=bid if bid is not None and bid >= 0 else None,
            ask=ask if ask is not None and ask >= 0 else None,
            volume=row.get("volume"),
            open_interest=row.get("openInterest", row.get("open_interest")),
            implied_volatility=row.get("impliedVolatility", row.get("implied_volatility")),
        )
    except ValidationError as exc:
        logger.debug("Dropping malformed contract row %s: %s", dict(row), exc)
        return None


def normalize_contracts(rows: ContractRows) -> List[OptionContract]:
    contracts = (normalize_contract(row) for row in _records(rows))
    return [contract for contract in contracts if contract is not None]


def _nearest_expiration(raw_expirations: Iterable[Any]) -> Optional[datetime]:
    parsed = [to_expiration_datetime(raw) for raw in raw_expirations]
    valid = [value for value in parsed if value is not None]
    return min(valid) if valid else None


def normalize_chain(
    snapshot: OptionsChain,
    now: Optional[datetime] = None,
    max_days_to_expiry: int = MAX_DAYS_TO_EXPIRY,
) -> Union[Chain, ChainRejection]:
    """Validate a provider snapshot and return a ``Chain`` or a rejection.

    ``max_days_to_expiry`` can only tighten the one-year limit.
    """

    symbol = snapshot.symbol.upper()
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    stock_price = snapshot.quote.resolved_price if snapshot.quote is not None else None
    if stock_price is None:
        return ChainRejection(symbol=symbol, reason=SkipReason.DATA_UNAVAILABLE, detail="no stock price")

    expirations = [raw for raw in (list(snapshot.expirations) or [snapshot.expiration]) if raw is not None]
    if not expirations:
        return ChainRejection(symbol=symbol, reason=SkipReason.DATA_UNAVAILABLE, detail="no expiration")
    expiration = _nearest_expiration(expirations)
    if expiration is None:
        return ChainRejection(
            symbol=symbol,
            reason=SkipReason.INVALID_CHAIN,
            detail=f"unreadable expirations {expirations[:3]}",
        )

    limit = min(max_days_to_expiry, MAX_DAYS_TO_EXPIRY)
    days_to_expiry = days_until(expiration, current)
    if days_to_expiry <= 0 or days_to_expiry > limit:
        return ChainRejection(
            symbol=symbol,
            reason=SkipReason.INVALID_CHAIN,
            detail=f"days to expiry {days_to_expiry} outside (0, {limit}]",
        )

    calls = normalize_contracts(snapshot.calls)
    puts = normalize_contracts(snapshot.puts)
    if not calls and not puts:
        return ChainRejection(symbol=symbol, reason=SkipReason.INVALID_CHAIN, detail="chain has no priced contracts")

    return Chain(
        symbol=symbol,
        stock_price=stock_price,
        expiration=expiration.date(),
        days_to_expiry=days_to_expiry,
        calls=tuple(calls),
        puts=tuple(puts),
        synthetic=snapshot.synthetic,
        as_of=current,
    )


__all__ = [
    "days_until",
    "normalize_chain",
    "normalize_contract",
    "normalize_contracts",
    "to_expiration_datetime",
]
