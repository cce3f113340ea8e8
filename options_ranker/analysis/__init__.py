"""Chain normalization and per-strategy trade analysis."""

from .normalizer import normalize_chain, normalize_contract, normalize_contracts
from .strategies import (
    STRATEGY_PROFILES,
    analyze_buy_call,
    analyze_buy_put,
    analyze_bull_call_spread,
    analyze_chain,
    analyze_covered_call,
    analyze_sell_call,
    analyze_sell_put,
)

__all__ = [
    "STRATEGY_PROFILES",
    "analyze_buy_call",
    "analyze_buy_put",
    "analyze_bull_call_spread",
    "analyze_chain",
    "analyze_covered_call",
    "analyze_sell_call",
    "analyze_sell_put",
    "normalize_chain",
    "normalize_contract",
    "normalize_contracts",
]
