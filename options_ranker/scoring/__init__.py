"""Convenient exports for scoring components."""

from .config import DEFAULT_SCORER_CONFIG, merge_config
from .engine import ScoreBreakdown, StrategyScorer

__all__ = [
    "DEFAULT_SCORER_CONFIG",
    "ScoreBreakdown",
    "StrategyScorer",
    "merge_config",
]
