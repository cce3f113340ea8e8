from __future__ import annotations

import pytest

from options_ranker.adapters import create_adapter
from options_ranker.adapters.synthetic import SyntheticOptionsDataAdapter
from options_ranker.adapters.yfinance import YFinanceOptionsDataAdapter
from options_ranker.config import build_adapter, build_fallback_adapter, build_settings


def test_default_provider_is_yfinance(monkeypatch):
    monkeypatch.delenv("OPTIONS_DATA_PROVIDER", raising=False)
    adapter = build_adapter(build_settings())
    assert isinstance(adapter, YFinanceOptionsDataAdapter)
    assert adapter.name == "yfinance"


def test_environment_override(monkeypatch):
    monkeypatch.setenv("OPTIONS_DATA_PROVIDER", "synthetic")
    adapter = build_adapter(build_settings())
    assert isinstance(adapter, SyntheticOptionsDataAdapter)
    assert adapter.synthetic


def test_invalid_provider_raises(monkeypatch):
    monkeypatch.setenv("OPTIONS_DATA_PROVIDER", "unknown")
    with pytest.raises(ValueError):
        build_adapter(build_settings())


def test_create_adapter_rejects_unknown_names():
    with pytest.raises(KeyError):
        create_adapter("polygon")


def test_build_adapter_applies_configured_settings(monkeypatch):
    monkeypatch.delenv("OPTIONS_DATA_PROVIDER", raising=False)
    settings = build_settings({"adapter": {"provider": "yfinance", "settings": {"max_retries": 5, "timeout_seconds": 3}}})

    adapter = build_adapter(settings)

    assert isinstance(adapter, YFinanceOptionsDataAdapter)
    assert adapter._max_retries == 5
    assert adapter._timeout_seconds == 3


def test_environment_provider_ignores_other_provider_settings(monkeypatch):
    monkeypatch.setenv("OPTIONS_DATA_PROVIDER", "synthetic")
    settings = build_settings({"adapter": {"provider": "yfinance", "settings": {"max_retries": 5}}})

    adapter = build_adapter(settings)

    assert isinstance(adapter, SyntheticOptionsDataAdapter)


def test_fallback_adapter_follows_settings():
    assert build_fallback_adapter(build_settings({"fallback": {"synthetic": False}})) is None

    fallback = build_fallback_adapter(build_settings({"fallback": {"synthetic": True, "seed": 11}}))
    assert isinstance(fallback, SyntheticOptionsDataAdapter)
    assert fallback._seed == 11
