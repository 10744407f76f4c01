from __future__ import annotations

from pathlib import Path

from resultsdash.config import DEFAULT_API_URL, load_config


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("RESULTS_API_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("AUTH_SESSION_TTL_SECONDS", raising=False)
    monkeypatch.delenv("AUTH_PUBLIC_BASE_URL", raising=False)
    load_config.cache_clear()
    cfg = load_config()
    assert cfg.api_base_url == DEFAULT_API_URL
    assert cfg.request_timeout_seconds == 30
    assert cfg.session_ttl_seconds == 43200
    assert cfg.cookie_secure is False
    assert cfg.console_sessions_enabled is False


def test_results_api_url_wins_and_is_normalized(monkeypatch) -> None:
    monkeypatch.setenv("NEXT_PUBLIC_API_URL", "http://legacy:8080/api")
    monkeypatch.setenv("RESULTS_API_URL", "https://results.example.edu/api/")
    load_config.cache_clear()
    assert load_config().api_base_url == "https://results.example.edu/api"


def test_next_public_api_url_fallback(monkeypatch) -> None:
    monkeypatch.setenv("NEXT_PUBLIC_API_URL", "http://legacy:8080/api")
    load_config.cache_clear()
    assert load_config().api_base_url == "http://legacy:8080/api"


def test_bounds_and_explicit_flags(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("RESULTS_API_TIMEOUT_SECONDS", "0.2")
    monkeypatch.setenv("AUTH_SESSION_TTL_SECONDS", "5")
    monkeypatch.setenv("AUTH_PUBLIC_BASE_URL", "https://results.example.edu")
    monkeypatch.setenv("AUTH_COOKIE_SECURE", "false")
    monkeypatch.setenv("RESULTSDASH_SESSION_FILE", str(tmp_path / "s.json"))
    load_config.cache_clear()
    cfg = load_config()
    assert cfg.request_timeout_seconds == 1.0
    assert cfg.session_ttl_seconds == 60
    assert cfg.cookie_secure is False
    assert cfg.session_file == Path(tmp_path / "s.json")
