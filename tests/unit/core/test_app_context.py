"""
Tests for wiring the engine from configuration.
"""
from unittest.mock import patch

import pytest

from core.app_context import AppContext
from core.config_loader import AppConfig, CacheConfig, LlmConfig


@pytest.fixture(autouse=True)
def no_database():
    with patch("database.database.configure_engine"):
        yield


@pytest.fixture(autouse=True)
def no_sdk_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


def test_missing_api_key_builds_heuristic_only_engine(caplog):
    config = AppConfig(cache=CacheConfig(enabled=False))

    with caplog.at_level("WARNING", logger="core.app_context"):
        ctx = AppContext.build(config)

    assert ctx.ai_service is None
    assert ctx.engine.refinement is None
    assert ctx.engine._admission("acct", "business") == "refinement_disabled"
    assert "no reasoning API key" in caplog.text


def test_api_key_enables_refinement():
    config = AppConfig(llm=LlmConfig(api_key="test-key"), cache=CacheConfig(enabled=False))

    ctx = AppContext.build(config)

    assert ctx.ai_service is not None
    assert ctx.engine.refinement is not None
