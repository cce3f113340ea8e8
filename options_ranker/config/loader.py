"""Environment aware configuration loader for the options ranker."""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from options_ranker.models import RankingMode
from options_ranker.scoring.config import DEFAULT_SCORER_CONFIG

DEFAULT_SETTINGS: Dict[str, Any] = {
    "watchlists": {
        "default": ["SPY", "QQQ"],
    },
    "scoring": copy.deepcopy(DEFAULT_SCORER_CONFIG),
    "adapter": {
        "provider": "yfinance",
        "settings": {},
    },
    "universe": {
        "screener_url": (
            "https://query1.finance.yahoo.com/v1/finance/screener/predefined/saved"
            "?formatted=true&scrIds=most_actives&count=100"
        ),
        "ttl_seconds": 3600,
        "max_symbols": 50,
        "min_volume": 1_000_000,
        "min_price": 5.0,
        "request_timeout_seconds": 10.0,
    },
    "ranking": {
        "batch_size": 3,
        "batch_delay_seconds": 0.3,
        "symbol_timeout_seconds": 20.0,
        "default_mode": "best_per_symbol",
        "top_k": 5,
        "max_days_to_expiry": 365,
    },
    "fallback": {
        "synthetic": False,
        "seed": 7,
    },
}

CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
ENVIRONMENT_VARIABLE = "APP_ENV"


class ScoringSettings(BaseModel):
    """Scoring constants for ``StrategyScorer``; unknown keys pass through."""

    model_config = ConfigDict(extra="allow")

    weights: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SCORER_CONFIG["weights"]))
    strategy_multipliers: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_SCORER_CONFIG["strategy_multipliers"])
    )
    score_bounds: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SCORER_CONFIG["score_bounds"]))

    @field_validator("weights", "strategy_multipliers", "score_bounds", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Mapping[str, Any]) -> Dict[str, float]:
        return {key: float(val) for key, val in dict(value or {}).items()}

    def to_engine_config(self) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "weights": dict(self.weights),
            "strategy_multipliers": dict(self.strategy_multipliers),
            "score_bounds": dict(self.score_bounds),
        }
        config.update(self.model_extra or {})
        return config


class AdapterSettings(BaseModel):
    provider: str = "yfinance"
    settings: Dict[str, Any] = Field(default_factory=dict)


class UniverseSettings(BaseModel):
    screener_url: str
    ttl_seconds: int = 3600
    max_symbols: int = 50
    min_volume: float = 1_000_000
    min_price: float = 5.0
    request_timeout_seconds: float = 10.0


class RankingSettings(BaseModel):
    batch_size: int = Field(default=3, ge=1)
    batch_delay_seconds: float = Field(default=0.3, ge=0)
    symbol_timeout_seconds: float = Field(default=20.0, gt=0)
    default_mode: RankingMode = RankingMode.BEST_PER_SYMBOL
    top_k: int = Field(default=5, ge=1)
    max_days_to_expiry: int = Field(default=365, ge=1, le=365)


class FallbackSettings(BaseModel):
    synthetic: bool = False
    seed: int = 7


class AppSettings(BaseModel):
    """Fully resolved application settings loaded from YAML."""

    model_config = ConfigDict(frozen=True)

    env: str
    watchlists: Dict[str, List[str]]
    scoring: ScoringSettings
    adapter: AdapterSettings
    universe: UniverseSettings
    ranking: RankingSettings
    fallback: FallbackSettings

    @field_validator("env")
    @classmethod
    def _normalize_env(cls, value: str) -> str:
        return value.lower()

    @field_validator("watchlists", mode="before")
    @classmethod
    def _coerce_watchlists(cls, value: Mapping[str, Any]) -> Dict[str, List[str]]:
        return {key: [str(item).upper() for item in items or []] for key, items in dict(value or {}).items()}

    def get_watchlist(self, name: str = "default") -> List[str]:
        return list(self.watchlists.get(name, []))

    def scoring_dict(self) -> Dict[str, Any]:
        return self.scoring.to_engine_config()


def _deep_merge(base: MutableMapping[str, Any], overrides: Mapping[str, Any]) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, Mapping):
            existing = base.get(key)
            if isinstance(existing, MutableMapping):
                base[key] = _deep_merge(copy.deepcopy(existing), value)
            else:
                base[key] = copy.deepcopy(value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle.read()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping at the root.")
        return data


def build_settings(overrides: Optional[Mapping[str, Any]] = None, env: str = "test") -> AppSettings:
    """Build settings from the defaults plus in-memory overrides (no file access)."""

    merged = _deep_merge(copy.deepcopy(DEFAULT_SETTINGS), dict(overrides or {}))
    merged["env"] = env
    return AppSettings.model_validate(merged)


def _build_settings(env: str) -> AppSettings:
    config_path = CONFIG_DIR / f"{env}.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file for environment '{env}' not found at {config_path}")

    return build_settings(_load_yaml(config_path), env=env)


@lru_cache(maxsize=None)
def _cached_settings(env: str) -> AppSettings:
    return _build_settings(env)


def get_settings(env: Optional[str] = None) -> AppSettings:
    """Load settings for the requested environment (default: APP_ENV or 'dev')."""

    resolved_env = (env or os.getenv(ENVIRONMENT_VARIABLE, "dev")).strip().lower()
    return _cached_settings(resolved_env)


def reset_settings_cache() -> None:
    """Clear the cached settings, primarily used during tests."""

    _cached_settings.cache_clear()


__all__ = [
    "AdapterSettings",
    "AppSettings",
    "CONFIG_DIR",
    "ENVIRONMENT_VARIABLE",
    "FallbackSettings",
    "RankingSettings",
    "ScoringSettings",
    "UniverseSettings",
    "build_settings",
    "get_settings",
    "reset_settings_cache",
]
