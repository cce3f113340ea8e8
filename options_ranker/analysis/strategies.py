"""Strategy analyzers for the six supported option trades.

Each single-leg strategy is one row in ``STRATEGY_PROFILES``: a strike window
relative to the stock price, a liquidity floor, a selection key, and the
economics/risk/narrative rules. ``analyze_with_profile`` is the only code path
that filters and selects contracts, so all strategies share the same
mechanics. The bull call spread needs two legs and has its own profile type.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from options_ranker.models import Chain, OptionContract, Recommendation, RiskLevel, Strategy

CONTRACT_MULTIPLIER = 100
LOW_IV_PCT = 30.0
HIGH_IV_PCT = 50.0


@dataclass(frozen=True)
class StrikeWindow:
    """Strike bounds expressed as fractions of the stock price."""

    lower: float
    upper: float
    lower_inclusive: bool = True
    upper_inclusive: bool = True

    def contains(self, strike: float, stock_price: float) -> bool:
        low = self.lower * stock_price
        high = self.upper * stock_price
        above = strike >= low if self.lower_inclusive else strike > low
        below = strike <= high if self.upper_inclusive else strike < high
        return above and below


@dataclass(frozen=True)
class Economics:
    return_pct: float
    break_even: float
    max_profit: Optional[float]
    max_loss: Optional[float]


@dataclass(frozen=True)
class StrategyProfile:
    strategy: Strategy
    window: StrikeWindow
    min_volume: int
    min_premium: float
    selection_key: Callable[[OptionContract], float]
    economics: Callable[[OptionContract, float], Economics]
    risk: Callable[[OptionContract, float], RiskLevel]
    narrative: Callable[[str, OptionContract, float, str, Economics], str]

    def is_eligible(self, contract: OptionContract, stock_price: float) -> bool:
        return (
            self.window.contains(contract.strike, stock_price)
            and contract.volume > self.min_volume
            and contract.last_price >= self.min_premium
        )


@dataclass(frozen=True)
class SpreadProfile:
    strategy: Strategy
    long_window: StrikeWindow
    short_window: StrikeWindow
    min_volume: int
    min_premium: float
    risk_level: RiskLevel

    def is_liquid(self, contract: OptionContract) -> bool:
        return contract.volume > self.min_volume and contract.last_price >= self.min_premium


def premium_volume_key(contract: OptionContract) -> float:
    return contract.last_price * math.log(contract.volume + 1)


def volume_per_premium_key(contract: OptionContract) -> float:
    return contract.volume / contract.last_price


def iv_risk(contract: OptionContract, stock_price: float) -> RiskLevel:
    iv = contract.iv_pct
    if iv < LOW_IV_PCT:
        return RiskLevel.LOW
    if iv > HIGH_IV_PCT:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def sell_put_risk(contract: OptionContract, stock_price: float) -> RiskLevel:
    iv = contract.iv_pct
    distance_pct = (stock_price - contract.strike) / stock_price * 100
    if iv < LOW_IV_PCT and distance_pct > 7:
        return RiskLevel.LOW
    if iv > HIGH_IV_PCT or distance_pct < 4:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def _fixed_risk(level: RiskLevel) -> Callable[[OptionContract, float], RiskLevel]:
    return lambda contract, stock_price: level


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _sell_put_economics(contract: OptionContract, stock_price: float) -> Economics:
    premium = contract.last_price
    return Economics(
        return_pct=premium / contract.strike * 100 if contract.strike else 0.0,
        break_even=contract.strike - premium,
        max_profit=premium * CONTRACT_MULTIPLIER,
        max_loss=(contract.strike - premium) * CONTRACT_MULTIPLIER,
    )


def _sell_call_economics(contract: OptionContract, stock_price: float) -> Economics:
    premium = contract.last_price
    return Economics(
        return_pct=premium / stock_price * 100,
        break_even=contract.strike + premium,
        max_profit=premium * CONTRACT_MULTIPLIER,
        max_loss=None,
    )


def _buy_call_economics(contract: OptionContract, stock_price: float) -> Economics:
    cost = contract.last_price
    # Payoff if the stock rallies 10% by expiration.
    return Economics(
        return_pct=(stock_price * 1.10 - contract.strike - cost) / cost * 100,
        break_even=contract.strike + cost,
        max_profit=None,
        max_loss=cost * CONTRACT_MULTIPLIER,
    )


def _buy_put_economics(contract: OptionContract, stock_price: float) -> Economics:
    cost = contract.last_price
    # Payoff if the stock drops 10% by expiration.
    return Economics(
        return_pct=(contract.strike - stock_price * 0.90 - cost) / cost * 100,
        break_even=contract.strike - cost,
        max_profit=(contract.strike - cost) * CONTRACT_MULTIPLIER,
        max_loss=cost * CONTRACT_MULTIPLIER,
    )


def _covered_call_economics(contract: OptionContract, stock_price: float) -> Economics:
    premium = contract.last_price
    called_away_gain = contract.strike - stock_price + premium
    return Economics(
        return_pct=called_away_gain / stock_price * 100,
        break_even=stock_price - premium,
        max_profit=called_away_gain * CONTRACT_MULTIPLIER,
        max_loss=(stock_price - premium) * CONTRACT_MULTIPLIER,
    )


def _sell_put_narrative(symbol: str, contract: OptionContract, stock_price: float, expiry: str, econ: Economics) -> str:
    strike = _money(contract.strike)
    collected = _money(contract.last_price * CONTRACT_MULTIPLIER)
    return (
        f"SELL PUT (Cash-Secured): Sell 1 {symbol} {expiry} put at {strike} strike. "
        f"Collect {collected} premium upfront. You are obligated to BUY 100 shares at {strike} if assigned. "
        f"Break-even: {_money(econ.break_even)}. Maximum profit: {collected}. "
        "Best for: bullish/neutral outlook, willing to own the stock at a lower price."
    )


def _sell_call_narrative(symbol: str, contract: OptionContract, stock_price: float, expiry: str, econ: Economics) -> str:
    strike = _money(contract.strike)
    collected = _money(contract.last_price * CONTRACT_MULTIPLIER)
    return (
        f"SELL CALL (Naked): Sell 1 {symbol} {expiry} call at {strike} strike. "
        f"Collect {collected} premium upfront. You are obligated to SELL 100 shares at {strike} if assigned. "
        f"Break-even: {_money(econ.break_even)}. Maximum profit: {collected}. "
        "Risk: unlimited if the stock rises sharply. Best for: bearish/neutral outlook, high risk tolerance."
    )


def _buy_call_narrative(symbol: str, contract: OptionContract, stock_price: float, expiry: str, econ: Economics) -> str:
    cost = _money(contract.last_price * CONTRACT_MULTIPLIER)
    return (
        f"BUY CALL (Long): Buy 1 {symbol} {expiry} call at {_money(contract.strike)} strike for {cost} total cost. "
        f"Break-even at expiration: {_money(econ.break_even)}. Profit potential: unlimited above break-even. "
        f"Maximum loss: {cost} (premium paid). Best for: bullish outlook, limited capital, want leverage."
    )


def _buy_put_narrative(symbol: str, contract: OptionContract, stock_price: float, expiry: str, econ: Economics) -> str:
    cost = _money(contract.last_price * CONTRACT_MULTIPLIER)
    return (
        f"BUY PUT (Long): Buy 1 {symbol} {expiry} put at {_money(contract.strike)} strike for {cost} total cost. "
        f"Break-even at expiration: {_money(econ.break_even)}. Profits if the stock falls below break-even. "
        f"Maximum loss: {cost} (premium paid). Best for: bearish outlook, portfolio protection, limited risk."
    )


def _covered_call_narrative(symbol: str, contract: OptionContract, stock_price: float, expiry: str, econ: Economics) -> str:
    strike = _money(contract.strike)
    stock_cost = _money(stock_price * CONTRACT_MULTIPLIER)
    total_profit = _money(econ.max_profit or 0.0)
    return (
        f"COVERED CALL: Own 100 shares of {symbol} (cost: {stock_cost}), SELL 1 {expiry} call at {strike} strike. "
        f"Collect {_money(contract.last_price * CONTRACT_MULTIPLIER)} premium immediately. "
        f"If the stock stays below {strike}, keep the premium and the shares. "
        f"If assigned, you sell the shares at {strike} (total profit: {total_profit}). "
        f"Break-even: {_money(econ.break_even)}. Best for: stock owners wanting income, neutral/slightly bullish outlook."
    )


STRATEGY_PROFILES: Dict[Strategy, StrategyProfile] = {
    Strategy.SELL_PUT: StrategyProfile(
        strategy=Strategy.SELL_PUT,
        window=StrikeWindow(0.90, 1.00, lower_inclusive=True, upper_inclusive=False),
        min_volume=10,
        min_premium=0.5,
        selection_key=premium_volume_key,
        economics=_sell_put_economics,
        risk=sell_put_risk,
        narrative=_sell_put_narrative,
    ),
    Strategy.SELL_CALL: StrategyProfile(
        strategy=Strategy.SELL_CALL,
        window=StrikeWindow(1.00, 1.10, lower_inclusive=False, upper_inclusive=False),
        min_volume=10,
        min_premium=0.5,
        selection_key=premium_volume_key,
        economics=_sell_call_economics,
        risk=_fixed_risk(RiskLevel.HIGH),
        narrative=_sell_call_narrative,
    ),
    Strategy.BUY_CALL: StrategyProfile(
        strategy=Strategy.BUY_CALL,
        window=StrikeWindow(0.98, 1.05),
        min_volume=10,
        min_premium=0.5,
        selection_key=volume_per_premium_key,
        economics=_buy_call_economics,
        risk=iv_risk,
        narrative=_buy_call_narrative,
    ),
    Strategy.BUY_PUT: StrategyProfile(
        strategy=Strategy.BUY_PUT,
        window=StrikeWindow(0.95, 1.02),
        min_volume=10,
        min_premium=0.5,
        selection_key=volume_per_premium_key,
        economics=_buy_put_economics,
        risk=iv_risk,
        narrative=_buy_put_narrative,
    ),
    Strategy.COVERED_CALL: StrategyProfile(
        strategy=Strategy.COVERED_CALL,
        window=StrikeWindow(1.00, 1.08, lower_inclusive=False, upper_inclusive=False),
        min_volume=10,
        min_premium=0.3,
        selection_key=premium_volume_key,
        economics=_covered_call_economics,
        risk=_fixed_risk(RiskLevel.LOW_TO_MEDIUM),
        narrative=_covered_call_narrative,
    ),
}

BULL_CALL_SPREAD_PROFILE = SpreadProfile(
    strategy=Strategy.BULL_CALL_SPREAD,
    long_window=StrikeWindow(0.98, 1.02),
    short_window=StrikeWindow(1.02, 1.10, lower_inclusive=False, upper_inclusive=False),
    min_volume=5,
    min_premium=0.5,
    risk_level=RiskLevel.MEDIUM,
)


def format_expiration(expiration: date) -> str:
    return expiration.strftime("%b %d, %Y")


def _annualized(return_pct: float, days_to_expiry: int) -> float:
    return return_pct / days_to_expiry * 365


def _inputs_usable(stock_price: float, days_to_expiry: int) -> bool:
    return stock_price is not None and stock_price > 0 and days_to_expiry is not None and days_to_expiry > 0


def analyze_with_profile(
    profile: StrategyProfile,
    symbol: str,
    stock_price: float,
    contracts: Sequence[OptionContract],
    expiration: date,
    days_to_expiry: int,
    synthetic: bool = False,
) -> Optional[Recommendation]:
    """Pick the best contract for a single-leg strategy, or ``None`` if nothing qualifies."""

    if not contracts or not _inputs_usable(stock_price, days_to_expiry):
        return None

    eligible = [contract for contract in contracts if profile.is_eligible(contract, stock_price)]
    if not eligible:
        return None

    # max() keeps the first contract on ties, i.e. chain order.
    best = max(eligible, key=profile.selection_key)
    econ = profile.economics(best, stock_price)
    premium = best.last_price

    return Recommendation(
        symbol=symbol,
        strategy=profile.strategy,
        stock_price=stock_price,
        strike_price=best.strike,
        premium=premium,
        total_premium=premium * CONTRACT_MULTIPLIER,
        bid=best.bid,
        ask=best.ask,
        expiration_date=expiration,
        days_to_expiry=days_to_expiry,
        volume=best.volume,
        open_interest=best.open_interest,
        implied_volatility_pct=best.iv_pct,
        return_on_capital_pct=econ.return_pct,
        annualized_return_pct=_annualized(econ.return_pct, days_to_expiry),
        break_even=econ.break_even,
        max_profit=econ.max_profit,
        max_loss=econ.max_loss,
        risk_level=profile.risk(best, stock_price),
        narrative=profile.narrative(symbol, best, stock_price, format_expiration(expiration), econ),
        synthetic=synthetic,
    )


def analyze_sell_put(
    symbol: str,
    stock_price: float,
    contracts: Sequence[OptionContract],
    expiration: date,
    days_to_expiry: int,
    synthetic: bool = False,
) -> Optional[Recommendation]:
    return analyze_with_profile(
        STRATEGY_PROFILES[Strategy.SELL_PUT], symbol, stock_price, contracts, expiration, days_to_expiry, synthetic
    )


def analyze_sell_call(
    symbol: str,
    stock_price: float,
    contracts: Sequence[OptionContract],
    expiration: date,
    days_to_expiry: int,
    synthetic: bool = False,
) -> Optional[Recommendation]:
    return analyze_with_profile(
        STRATEGY_PROFILES[Strategy.SELL_CALL], symbol, stock_price, contracts, expiration, days_to_expiry, synthetic
    )


def analyze_buy_call(
    symbol: str,
    stock_price: float,
    contracts: Sequence[OptionContract],
    expiration: date,
    days_to_expiry: int,
    synthetic: bool = False,
) -> Optional[Recommendation]:
    return analyze_with_profile(
        STRATEGY_PROFILES[Strategy.BUY_CALL], symbol, stock_price, contracts, expiration, days_to_expiry, synthetic
    )


def analyze_buy_put(
    symbol: str,
    stock_price: float,
    contracts: Sequence[OptionContract],
    expiration: date,
    days_to_expiry: int,
    synthetic: bool = False,
) -> Optional[Recommendation]:
    return analyze_with_profile(
        STRATEGY_PROFILES[Strategy.BUY_PUT], symbol, stock_price, contracts, expiration, days_to_expiry, synthetic
    )


def analyze_covered_call(
    symbol: str,
    stock_price: float,
    contracts: Sequence[OptionContract],
    expiration: date,
    days_to_expiry: int,
    synthetic: bool = False,
) -> Optional[Recommendation]:
    return analyze_with_profile(
        STRATEGY_PROFILES[Strategy.COVERED_CALL], symbol, stock_price, contracts, expiration, days_to_expiry, synthetic
    )


def analyze_bull_call_spread(
    symbol: str,
    stock_price: float,
    contracts: Sequence[OptionContract],
    expiration: date,
    days_to_expiry: int,
    synthetic: bool = False,
) -> Optional[Recommendation]:
    """Buy a near-the-money call and sell a higher strike call against it.

    Takes the first long/short pair in chain order with a positive net debit.
    """

    profile = BULL_CALL_SPREAD_PROFILE
    if not contracts or len(contracts) < 2 or not _inputs_usable(stock_price, days_to_expiry):
        return None

    longs = [c for c in contracts if profile.is_liquid(c) and profile.long_window.contains(c.strike, stock_price)]
    shorts = [c for c in contracts if profile.is_liquid(c) and profile.short_window.contains(c.strike, stock_price)]

    pair = next(
        (
            (long_leg, short_leg)
            for long_leg in longs
            for short_leg in shorts
            if short_leg.strike > long_leg.strike and long_leg.last_price - short_leg.last_price > 0
        ),
        None,
    )
    if pair is None:
        return None

    long_leg, short_leg = pair
    net_cost = long_leg.last_price - short_leg.last_price
    width = short_leg.strike - long_leg.strike
    max_profit = width - net_cost
    return_pct = max_profit / net_cost * 100
    break_even = long_leg.strike + net_cost
    iv_pct = (long_leg.iv_pct + short_leg.iv_pct) / 2
    expiry = format_expiration(expiration)

    narrative = (
        f"BULL CALL SPREAD: BUY 1 {symbol} {expiry} call at {_money(long_leg.strike)} "
        f"(pay {_money(long_leg.last_price * CONTRACT_MULTIPLIER)}), SELL 1 call at {_money(short_leg.strike)} "
        f"(collect {_money(short_leg.last_price * CONTRACT_MULTIPLIER)}). "
        f"Net cost: {_money(net_cost * CONTRACT_MULTIPLIER)}. "
        f"Maximum profit: {_money(max_profit * CONTRACT_MULTIPLIER)} if the stock is at or above "
        f"{_money(short_leg.strike)}. Break-even: {_money(break_even)}. "
        f"Maximum loss: {_money(net_cost * CONTRACT_MULTIPLIER)} (net cost). "
        "Best for: moderately bullish outlook, want to reduce the cost of a long call."
    )

    return Recommendation(
        symbol=symbol,
        strategy=profile.strategy,
        stock_price=stock_price,
        strike_price=long_leg.strike,
        short_strike_price=short_leg.strike,
        premium=net_cost,
        total_premium=net_cost * CONTRACT_MULTIPLIER,
        bid=long_leg.bid,
        ask=long_leg.ask,
        expiration_date=expiration,
        days_to_expiry=days_to_expiry,
        volume=min(long_leg.volume, short_leg.volume),
        open_interest=min(long_leg.open_interest, short_leg.open_interest),
        implied_volatility_pct=iv_pct,
        return_on_capital_pct=return_pct,
        annualized_return_pct=_annualized(return_pct, days_to_expiry),
        break_even=break_even,
        max_profit=max_profit * CONTRACT_MULTIPLIER,
        max_loss=net_cost * CONTRACT_MULTIPLIER,
        risk_level=profile.risk_level,
        narrative=narrative,
        synthetic=synthetic,
    )


ANALYZERS = (
    (Strategy.SELL_PUT, "puts", analyze_sell_put),
    (Strategy.SELL_CALL, "calls", analyze_sell_call),
    (Strategy.BUY_CALL, "calls", analyze_buy_call),
    (Strategy.BUY_PUT, "puts", analyze_buy_put),
    (Strategy.COVERED_CALL, "calls", analyze_covered_call),
    (Strategy.BULL_CALL_SPREAD, "calls", analyze_bull_call_spread),
)


def analyze_chain(chain: Chain) -> List[Recommendation]:
    """Run every analyzer over a chain, in canonical strategy order."""

    candidates: List[Recommendation] = []
    for _, side, analyzer in ANALYZERS:
        candidate = analyzer(
            chain.symbol,
            chain.stock_price,
            getattr(chain, side),
            chain.expiration,
            chain.days_to_expiry,
            chain.synthetic,
        )
        if candidate is not None:
            candidates.append(candidate)
    return candidates


__all__ = [
    "ANALYZERS",
    "BULL_CALL_SPREAD_PROFILE",
    "CONTRACT_MULTIPLIER",
    "Economics",
    "STRATEGY_PROFILES",
    "SpreadProfile",
    "StrategyProfile",
    "StrikeWindow",
    "analyze_buy_call",
    "analyze_buy_put",
    "analyze_bull_call_spread",
    "analyze_chain",
    "analyze_covered_call",
    "analyze_sell_call",
    "analyze_sell_put",
    "analyze_with_profile",
    "format_expiration",
    "iv_risk",
    "sell_put_risk",
]
