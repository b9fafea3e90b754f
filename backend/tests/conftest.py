"""Shared fixtures: isolated config home, no API keys, empty caches."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from launchlens.services.cache import competitor_cache, market_cache
from launchlens.services.config_store import get_config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config store at a temp dir and drop any real keys."""
    monkeypatch.setenv("LAUNCHLENS_HOME", str(tmp_path / "launchlens-home"))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("PERPLEXITY_API_KEY", raising=False)
    get_config.cache_clear()
    competitor_cache.clear()
    market_cache.clear()
    yield tmp_path / "launchlens-home"
    get_config.cache_clear()
    competitor_cache.clear()
    market_cache.clear()


@pytest.fixture
def perplexity_key(monkeypatch):
    monkeypatch.setenv("PERPLEXITY_API_KEY", "pplx-test-key-1234")
    get_config.cache_clear()
    return "pplx-test-key-1234"


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key-5678")
    get_config.cache_clear()
    return "sk-test-key-5678"
