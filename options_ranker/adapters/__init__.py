"""Adapter implementations for external options data providers."""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Type

from .base import (
    AdapterError,
    DataUnavailable,
    OptionsChain,
    OptionsDataAdapter,
    ProviderTimeout,
    RateLimitError,
)

_ADAPTER_REGISTRY: Dict[str, str] = {
    "yfinance": "options_ranker.adapters.yfinance:YFinanceOptionsDataAdapter",
    "synthetic": "options_ranker.adapters.synthetic:SyntheticOptionsDataAdapter",
}


def create_adapter(provider: str, **settings: Any) -> OptionsDataAdapter:
    """Instantiate an options data adapter by name.

    Args:
        provider: The lowercase name of the provider to load.
        **settings: Keyword arguments forwarded to the adapter constructor.

    Returns:
        An instance of the requested adapter implementation.

    Raises:
        KeyError: If the provider name is unknown.
    """

    normalized = provider.lower()
    try:
        dotted_path = _ADAPTER_REGISTRY[normalized]
    except KeyError as exc:
        raise KeyError(f"Unknown options data provider: {provider}") from exc

    module_name, class_name = dotted_path.split(":", 1)
    module = import_module(module_name)
    adapter_cls: Type[OptionsDataAdapter] = getattr(module, class_name)
    return adapter_cls(**settings)


__all__ = [
    "AdapterError",
    "DataUnavailable",
    "OptionsChain",
    "OptionsDataAdapter",
    "ProviderTimeout",
    "RateLimitError",
    "create_adapter",
]
