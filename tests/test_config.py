"""Tests for chatdock.config.Settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from chatdock.config import Settings, settings


def test_defaults():
    config = Settings(_env_file=None)
    assert config.api_prefix == "/api"
    assert config.csrf_cookie_name == "__Host-csrf-token"
    assert config.csrf_readable_cookie_name == "csrf-token-readable"
    assert config.csrf_header_name == "X-CSRF-Token"
    assert config.csrf_cookie_max_age == 86400
    assert config.csrf_token_bytes == 32


def test_allowed_origins_comma_separated(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example")
    config = Settings(_env_file=None)
    assert config.cors_origins == ["https://a.example", "https://b.example"]


def test_exempt_paths_json_list(monkeypatch):
    monkeypatch.setenv("CSRF_EXEMPT_PATHS", '["/api/integrations/", "/api/slack/events"]')
    config = Settings(_env_file=None)
    assert config.csrf_exempt_paths == ["/api/integrations/", "/api/slack/events"]


def test_empty_list_env(monkeypatch):
    monkeypatch.setenv("CSRF_EXEMPT_PATHS", "")
    assert Settings(_env_file=None).csrf_exempt_paths == []


@pytest.mark.parametrize("raw", ["api", "/api/", "api/"])
def test_api_prefix_normalized(raw):
    assert Settings(_env_file=None, api_prefix=raw).api_prefix == "/api"


@pytest.mark.parametrize("environment", ["development", "staging", "production"])
def test_secure_cookies_by_default_in_every_environment(monkeypatch, environment):
    """__Host- cookies need Secure, so the default never depends on environment."""
    monkeypatch.delenv("CSRF_COOKIE_SECURE", raising=False)
    assert Settings(_env_file=None, environment=environment).csrf_secure_cookies is True


def test_secure_cookie_override():
    config = Settings(
        _env_file=None, environment="production", csrf_cookie_secure=False
    )
    assert config.is_production
    assert config.csrf_secure_cookies is False


def test_token_bytes_floor():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, csrf_token_bytes=8)


def test_app_reads_the_shared_settings(app):
    """Routers and middleware all see the module-level singleton."""
    assert app.state.settings is settings
    paths = {route.path for route in app.routes}
    assert f"{settings.api_prefix}/csrf-token" in paths
    assert f"{settings.api_prefix}/health" in paths
