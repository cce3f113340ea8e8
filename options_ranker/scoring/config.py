from __future__ import annotations

import copy
from typing import Dict

# Structurally riskier strategies are discounted so raw return alone
# cannot crown them.
SELL_CALL_RISK_MULTIPLIER = 0.8
BULL_CALL_SPREAD_RISK_MULTIPLIER = 0.85
DEFAULT_RISK_MULTIPLIER = 1.0

DEFAULT_SCORER_CONFIG: Dict[str, object] = {
    "weights": {
        "return": 5.0,
        "liquidity": 2.0,
        "iv_penalty": 0.3,
        "time_fit": 0.5,
    },
    "liquidity_cap": 15.0,
    "iv_baseline": 30.0,
    "time_target_days": 30,
    "time_window_days": 30,
    "strategy_multipliers": {
        "Sell Put": DEFAULT_RISK_MULTIPLIER,
        "Sell Call": SELL_CALL_RISK_MULTIPLIER,
        "Buy Call": DEFAULT_RISK_MULTIPLIER,
        "Buy Put": DEFAULT_RISK_MULTIPLIER,
        "Covered Call": DEFAULT_RISK_MULTIPLIER,
        "Bull Call Spread": BULL_CALL_SPREAD_RISK_MULTIPLIER,
    },
    "score_bounds": {
        "min": 0.0,
    },
}

_NESTED_KEYS = ("weights", "strategy_multipliers", "score_bounds")


def merge_config(overrides: Dict[str, object] | None) -> Dict[str, object]:
    merged = copy.deepcopy(DEFAULT_SCORER_CONFIG)
    if not overrides:
        return merged
    for key, value in overrides.items():
        if key in _NESTED_KEYS and isinstance(value, dict):
            section = dict(merged.get(key, {}))
            section.update(value)
            merged[key] = section
        elif value is not None:
            merged[key] = value
    return merged


__all__ = [
    "BULL_CALL_SPREAD_RISK_MULTIPLIER",
    "DEFAULT_RISK_MULTIPLIER",
    "DEFAULT_SCORER_CONFIG",
    "SELL_CALL_RISK_MULTIPLIER",
    "merge_config",
]
