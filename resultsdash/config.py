from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

DEFAULT_API_URL = "http://localhost:8080/api"
DEFAULT_SESSION_FILE = "~/.config/resultsdash/session.json"


@dataclass(frozen=True)
class AppConfig:
    # Backend REST API
    api_base_url: str
    request_timeout_seconds: float

    # Console session configuration
    public_base_url: Optional[str]
    session_secret: Optional[str]  # Required for cookie signing
    session_ttl_seconds: int
    cookie_secure: bool

    # CLI session storage
    session_file: Path

    log_level: str

    @property
    def console_sessions_enabled(self) -> bool:
        return bool(self.session_secret)


def _env(name: str) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or None


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    `RESULTS_API_URL` wins over `NEXT_PUBLIC_API_URL` (kept so an existing dashboard
    `.env` keeps working); both fall back to the local development backend.
    """
    api_base_url = (_env("RESULTS_API_URL") or _env("NEXT_PUBLIC_API_URL") or DEFAULT_API_URL).rstrip("/")

    timeout = float(_env("RESULTS_API_TIMEOUT_SECONDS") or "30")
    if timeout < 1:
        timeout = 1.0

    public_base_url = _env("AUTH_PUBLIC_BASE_URL")
    cookie_secure_env = (_env("AUTH_COOKIE_SECURE") or "").lower()
    if cookie_secure_env in ("1", "true", "yes", "on"):
        cookie_secure = True
    elif cookie_secure_env in ("0", "false", "no", "off"):
        cookie_secure = False
    else:
        # Default: secure cookies when the console is served over https; otherwise allow local dev.
        cookie_secure = (public_base_url or "").startswith("https://")

    ttl = int(float(_env("AUTH_SESSION_TTL_SECONDS") or "43200"))  # 12h default
    if ttl <= 60:
        ttl = 60

    return AppConfig(
        api_base_url=api_base_url,
        request_timeout_seconds=timeout,
        public_base_url=public_base_url,
        session_secret=_env("AUTH_SESSION_SECRET"),
        session_ttl_seconds=ttl,
        cookie_secure=cookie_secure,
        session_file=Path(_env("RESULTSDASH_SESSION_FILE") or DEFAULT_SESSION_FILE).expanduser(),
        log_level=(_env("LOG_LEVEL") or "info").upper(),
    )
