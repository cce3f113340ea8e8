"""Configuration helpers for the ranker, CLI and API."""

from __future__ import annotations

import os
from typing import Optional

from options_ranker.adapters import OptionsDataAdapter, create_adapter

from .loader import AppSettings, build_settings, get_settings, reset_settings_cache

PROVIDER_ENVIRONMENT_VARIABLE = "OPTIONS_DATA_PROVIDER"


def build_adapter(settings: AppSettings) -> OptionsDataAdapter:
    """Create the primary adapter described by ``settings``.

    ``OPTIONS_DATA_PROVIDER`` overrides the configured provider; adapter
    keyword settings only apply to the provider they were written for.
    """

    configured = settings.adapter.provider.strip().lower()
    name = os.getenv(PROVIDER_ENVIRONMENT_VARIABLE, configured).strip().lower()
    kwargs = dict(settings.adapter.settings) if name == configured else {}
    try:
        return create_adapter(name, **kwargs)
    except KeyError as exc:
        raise ValueError(f"Unsupported options data provider: {name}") from exc


def build_fallback_adapter(settings: AppSettings) -> Optional[OptionsDataAdapter]:
    """Return the synthetic demo adapter when the settings enable it."""

    if not settings.fallback.synthetic:
        return None
    return create_adapter("synthetic", seed=settings.fallback.seed)


__all__ = [
    "AppSettings",
    "PROVIDER_ENVIRONMENT_VARIABLE",
    "build_adapter",
    "build_fallback_adapter",
    "build_settings",
    "get_settings",
    "reset_settings_cache",
]
