from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from options_ranker.analysis import (
    analyze_buy_call,
    analyze_buy_put,
    analyze_bull_call_spread,
    analyze_chain,
    analyze_covered_call,
    analyze_sell_call,
    analyze_sell_put,
)
from options_ranker.models import STRATEGY_ORDER, Chain, RiskLevel, Strategy

EXPIRY = date(2025, 2, 5)
DTE = 30


def test_sell_put_economics(make_contract):
    rec = analyze_sell_put("XYZ", 200.0, [make_contract(190.0, 3.0)], EXPIRY, DTE)

    assert rec is not None
    assert rec.strategy is Strategy.SELL_PUT
    assert rec.strike_price == 190.0
    assert rec.premium == 3.0
    assert rec.total_premium == pytest.approx(300.0)
    assert rec.return_on_capital_pct == pytest.approx(1.5789, abs=1e-4)
    assert rec.annualized_return_pct == pytest.approx(3.0 / 190.0 * 100 / DTE * 365)
    assert rec.break_even == pytest.approx(187.0)
    assert rec.max_profit == pytest.approx(300.0)
    assert rec.max_loss == pytest.approx(18700.0)
    assert rec.risk_level is RiskLevel.MEDIUM
    assert rec.narrative.startswith("SELL PUT (Cash-Secured): Sell 1 XYZ Feb 05, 2025 put at $190.00 strike.")


def test_sell_put_outside_window_returns_none(make_contract):
    assert analyze_sell_put("XYZ", 200.0, [make_contract(250.0, 3.0)], EXPIRY, DTE) is None
    # Upper bound is exclusive: an at-the-money put does not qualify.
    assert analyze_sell_put("XYZ", 200.0, [make_contract(200.0, 3.0)], EXPIRY, DTE) is None
    assert analyze_sell_put("XYZ", 200.0, [make_contract(180.0, 3.0)], EXPIRY, DTE) is not None


def test_liquidity_floor_excludes_thin_contracts(make_contract):
    thin_volume = make_contract(190.0, 3.0, volume=10)
    cheap = make_contract(192.0, 0.4, volume=5000)

    assert analyze_sell_put("XYZ", 200.0, [thin_volume, cheap], EXPIRY, DTE) is None


def test_sell_put_prefers_premium_weighted_by_volume(make_contract):
    richer = make_contract(190.0, 3.0, volume=500)
    busier = make_contract(185.0, 2.0, volume=5000)

    rec = analyze_sell_put("XYZ", 200.0, [busier, richer], EXPIRY, DTE)

    assert rec is not None
    assert rec.strike_price == 190.0


def test_sell_put_risk_levels(make_contract):
    far_calm = analyze_sell_put("XYZ", 200.0, [make_contract(184.0, 1.0, iv=0.2)], EXPIRY, DTE)
    near = analyze_sell_put("XYZ", 200.0, [make_contract(195.0, 1.0, iv=0.2)], EXPIRY, DTE)
    volatile = analyze_sell_put("XYZ", 200.0, [make_contract(184.0, 1.0, iv=0.6)], EXPIRY, DTE)

    assert far_calm.risk_level is RiskLevel.LOW
    assert near.risk_level is RiskLevel.HIGH
    assert volatile.risk_level is RiskLevel.HIGH


def test_sell_call_economics(make_contract):
    rec = analyze_sell_call("XYZ", 200.0, [make_contract(210.0, 2.5)], EXPIRY, DTE)

    assert rec is not None
    assert rec.return_on_capital_pct == pytest.approx(1.25)
    assert rec.break_even == pytest.approx(212.5)
    assert rec.max_profit == pytest.approx(250.0)
    assert rec.max_loss is None
    assert rec.risk_level is RiskLevel.HIGH
    assert analyze_sell_call("XYZ", 200.0, [make_contract(220.0, 2.5)], EXPIRY, DTE) is None
    assert analyze_sell_call("XYZ", 200.0, [make_contract(200.0, 2.5)], EXPIRY, DTE) is None


def test_sell_call_far_out_of_the_money_strike_returns_none(make_contract):
    # $250 is 25% above a $200 stock, outside the 10% window.
    assert analyze_sell_call("XYZ", 200.0, [make_contract(250.0, 2.5, volume=5000)], EXPIRY, DTE) is None


def test_buy_call_economics_and_selection(make_contract):
    expensive = make_contract(200.0, 5.0, volume=1000)
    efficient = make_contract(204.0, 2.0, volume=500)

    rec = analyze_buy_call("XYZ", 200.0, [expensive, efficient], EXPIRY, DTE)

    assert rec is not None
    assert rec.strike_price == 204.0
    assert rec.return_on_capital_pct == pytest.approx((220.0 - 204.0 - 2.0) / 2.0 * 100)
    assert rec.break_even == pytest.approx(206.0)
    assert rec.max_profit is None
    assert rec.max_loss == pytest.approx(200.0)
    assert rec.risk_level is RiskLevel.LOW


def test_buy_put_economics(make_contract):
    rec = analyze_buy_put("XYZ", 200.0, [make_contract(198.0, 4.0, iv=0.4)], EXPIRY, DTE)

    assert rec is not None
    assert rec.return_on_capital_pct == pytest.approx(350.0)
    assert rec.break_even == pytest.approx(194.0)
    assert rec.max_profit == pytest.approx(19400.0)
    assert rec.max_loss == pytest.approx(400.0)
    assert rec.risk_level is RiskLevel.MEDIUM


def test_covered_call_economics(make_contract):
    rec = analyze_covered_call("XYZ", 200.0, [make_contract(210.0, 2.0)], EXPIRY, DTE)

    assert rec is not None
    assert rec.return_on_capital_pct == pytest.approx(6.0)
    assert rec.annualized_return_pct == pytest.approx(6.0 / DTE * 365)
    assert rec.break_even == pytest.approx(198.0)
    assert rec.max_profit == pytest.approx(1200.0)
    assert rec.max_loss == pytest.approx(19800.0)
    assert rec.risk_level is RiskLevel.LOW_TO_MEDIUM
    assert analyze_covered_call("XYZ", 200.0, [make_contract(216.0, 2.0)], EXPIRY, DTE) is None


def test_covered_call_accepts_lower_premium(make_contract):
    assert analyze_covered_call("XYZ", 200.0, [make_contract(205.0, 0.3)], EXPIRY, DTE) is not None
    assert analyze_sell_call("XYZ", 200.0, [make_contract(205.0, 0.3)], EXPIRY, DTE) is None


def test_bull_call_spread_economics(make_contract):
    rec = analyze_bull_call_spread(
        "XYZ", 200.0, [make_contract(200.0, 5.0), make_contract(210.0, 2.0)], EXPIRY, DTE
    )

    assert rec is not None
    assert rec.strategy is Strategy.BULL_CALL_SPREAD
    assert rec.strike_price == 200.0
    assert rec.short_strike_price == 210.0
    assert rec.premium == pytest.approx(3.0)
    assert rec.total_premium == pytest.approx(300.0)
    assert rec.max_profit == pytest.approx(700.0)
    assert rec.max_loss == pytest.approx(300.0)
    assert rec.return_on_capital_pct == pytest.approx(233.333, abs=1e-3)
    assert rec.break_even == pytest.approx(203.0)
    assert rec.risk_level is RiskLevel.MEDIUM


def test_bull_call_spread_requires_positive_debit(make_contract):
    credit = [make_contract(200.0, 2.0), make_contract(210.0, 2.5)]
    single = [make_contract(200.0, 5.0)]

    assert analyze_bull_call_spread("XYZ", 200.0, credit, EXPIRY, DTE) is None
    assert analyze_bull_call_spread("XYZ", 200.0, single, EXPIRY, DTE) is None


def test_bull_call_spread_uses_first_valid_pair(make_contract):
    contracts = [
        make_contract(198.0, 6.0),
        make_contract(201.0, 4.5),
        make_contract(208.0, 2.5),
        make_contract(212.0, 1.5),
    ]

    rec = analyze_bull_call_spread("XYZ", 200.0, contracts, EXPIRY, DTE)

    assert rec is not None
    assert (rec.strike_price, rec.short_strike_price) == (198.0, 208.0)


@pytest.mark.parametrize("stock_price, days", [(0.0, DTE), (200.0, 0), (-5.0, DTE)])
def test_unusable_inputs_return_none(make_contract, stock_price, days):
    contracts = [make_contract(190.0, 3.0), make_contract(200.0, 5.0), make_contract(210.0, 2.0)]

    assert analyze_sell_put("XYZ", stock_price, contracts, EXPIRY, days) is None
    assert analyze_bull_call_spread("XYZ", stock_price, contracts, EXPIRY, days) is None


def test_empty_contracts_return_none():
    assert analyze_buy_put("XYZ", 200.0, [], EXPIRY, DTE) is None


def build_chain(make_contract, synthetic: bool = False) -> Chain:
    calls = (
        make_contract(198.0, 6.0, volume=700),
        make_contract(202.0, 4.0, volume=900),
        make_contract(206.0, 2.5, volume=600),
        make_contract(210.0, 1.5, volume=400),
    )
    puts = (
        make_contract(186.0, 1.2, volume=300),
        make_contract(192.0, 2.5, volume=800),
        make_contract(198.0, 4.0, volume=650),
    )
    return Chain(
        symbol="XYZ",
        stock_price=200.0,
        expiration=EXPIRY,
        days_to_expiry=DTE,
        calls=calls,
        puts=puts,
        synthetic=synthetic,
        as_of=datetime(2025, 1, 6, tzinfo=timezone.utc),
    )


def test_analyze_chain_emits_strategies_in_canonical_order(make_contract):
    candidates = analyze_chain(build_chain(make_contract))

    strategies = [candidate.strategy for candidate in candidates]
    assert strategies == STRATEGY_ORDER
    assert len({(c.symbol, c.strategy) for c in candidates}) == len(candidates)


def test_analysis_is_idempotent(make_contract):
    chain = build_chain(make_contract)

    assert analyze_chain(chain) == analyze_chain(chain)


def test_premium_selling_returns_are_bounded(make_contract):
    for candidate in analyze_chain(build_chain(make_contract)):
        if candidate.strategy in (Strategy.SELL_PUT, Strategy.SELL_CALL, Strategy.COVERED_CALL):
            assert 0 < candidate.return_on_capital_pct < 100
        assert candidate.days_to_expiry == DTE
        assert candidate.score == 0.0


def test_synthetic_chain_marks_candidates(make_contract):
    candidates = analyze_chain(build_chain(make_contract, synthetic=True))

    assert candidates
    assert all(candidate.synthetic for candidate in candidates)
