from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from options_ranker.models import Recommendation, Strategy

from .config import DEFAULT_RISK_MULTIPLIER, merge_config


@dataclass(frozen=True)
class ScoreBreakdown:
    total: float
    multiplier: float
    components: Dict[str, float] = field(default_factory=dict)


class StrategyScorer:
    """Heuristic desirability score shared by every strategy.

    One instance holds one set of constants, so every candidate scored by it
    in a ranking pass is directly comparable.
    """

    def __init__(self, config: Dict[str, object] | None = None):
        self.config = merge_config(config)
        weights = self.config["weights"]
        self.weight_return = float(weights.get("return", 5.0))
        self.weight_liquidity = float(weights.get("liquidity", 2.0))
        self.weight_iv_penalty = float(weights.get("iv_penalty", 0.3))
        self.weight_time_fit = float(weights.get("time_fit", 0.5))
        self.liquidity_cap = float(self.config.get("liquidity_cap", 15.0))
        self.iv_baseline = float(self.config.get("iv_baseline", 30.0))
        self.time_target_days = float(self.config.get("time_target_days", 30))
        self.time_window_days = float(self.config.get("time_window_days", 30))
        self.min_score = float(self.config.get("score_bounds", {}).get("min", 0.0))
        self.multipliers = {
            Strategy(key): float(value) for key, value in self.config.get("strategy_multipliers", {}).items()
        }

    def multiplier_for(self, strategy: Strategy) -> float:
        return self.multipliers.get(strategy, DEFAULT_RISK_MULTIPLIER)

    def score(self, candidate: Recommendation) -> ScoreBreakdown:
        baseline = candidate.return_on_capital_pct * self.weight_return
        liquidity = min(math.log(candidate.volume + 1) * self.weight_liquidity, self.liquidity_cap)
        # Only IV above the baseline is penalized.
        volatility = -max(candidate.implied_volatility_pct - self.iv_baseline, 0.0) * self.weight_iv_penalty
        distance = abs(candidate.days_to_expiry - self.time_target_days)
        time_fit = max(self.time_window_days - distance, 0.0) * self.weight_time_fit

        multiplier = self.multiplier_for(candidate.strategy)
        raw_total = (baseline + liquidity + volatility + time_fit) * multiplier
        total = max(self.min_score, raw_total)

        components = {
            "return": round(baseline, 4),
            "liquidity": round(liquidity, 4),
            "volatility": round(volatility, 4),
            "time_fit": round(time_fit, 4),
        }
        return ScoreBreakdown(total=round(total, 2), multiplier=multiplier, components=components)

    def apply(self, candidate: Recommendation) -> Recommendation:
        """Return a copy of ``candidate`` carrying its score."""

        breakdown = self.score(candidate)
        components = dict(breakdown.components)
        components["multiplier"] = breakdown.multiplier
        return candidate.model_copy(update={"score": breakdown.total, "score_components": components})

    def apply_all(self, candidates: Iterable[Recommendation]) -> List[Recommendation]:
        return [self.apply(candidate) for candidate in candidates]


__all__ = ["ScoreBreakdown", "StrategyScorer"]
