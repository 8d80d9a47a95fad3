"""
Configuration Unit Tests
"""

import json

import pytest

from rewrite_proxy.config import Settings
from rewrite_proxy.main import create_app, create_upstream_client


def test_defaults(settings):
    assert settings.REWRITE_PATH_PREFIX == "/cardInfo"
    assert settings.REWRITE_DEFAULT_RULES is True
    assert settings.REWRITE_RULES == []
    assert settings.FORWARD_RAW_BODY is False
    assert settings.CSP_ENABLED is False
    assert settings.PORT == 8080


def test_environment_overrides(monkeypatch):
    rules = [{"name": "usd", "pattern": "$0.00", "replacement": "$1000.00"}]
    monkeypatch.setenv("TARGET", "http://localhost:8081")
    monkeypatch.setenv("REWRITE_PATH_PREFIX", "/balance")
    monkeypatch.setenv("REWRITE_RULES", json.dumps(rules))
    monkeypatch.setenv("FORWARD_RAW_BODY", "true")

    settings = Settings(_env_file=None)

    assert settings.TARGET == "http://localhost:8081"
    assert settings.REWRITE_PATH_PREFIX == "/balance"
    assert settings.REWRITE_RULES == rules
    assert settings.FORWARD_RAW_BODY is True


def test_app_builds_configured_rules(settings_factory):
    settings = settings_factory(
        REWRITE_RULES=[{"name": "usd", "pattern": "$0.00", "replacement": "$1000.00"}],
    )

    app = create_app(settings)
    engine = app.state.proxy_service.dispatcher.engine

    assert engine.rule_names == ["currency-call", "zero-balance", "usd"]


def test_invalid_rule_fails_at_startup(settings_factory):
    settings = settings_factory(REWRITE_RULES=[{"name": "broken", "pattern": "(", "regex": True, "replacement": ""}])

    with pytest.raises(ValueError):
        create_app(settings)


@pytest.mark.asyncio
async def test_upstream_timeout_applies_per_operation(settings_factory):
    client = create_upstream_client(settings_factory(HTTP_TIMEOUT=12.5, HTTP_CONNECT_TIMEOUT=3.0))
    try:
        assert client.timeout.connect == 3.0
        assert client.timeout.read == 12.5
        assert client.timeout.write == 12.5
        assert client.timeout.pool == 12.5
        assert client.follow_redirects is False
    finally:
        await client.aclose()
