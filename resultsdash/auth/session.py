from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from resultsdash.auth.models import SessionUser
from resultsdash.config import AppConfig

logger = logging.getLogger(__name__)

SESSION_SALT = "resultsdash-console-session-v1"


def session_cookie_name(cfg: AppConfig) -> str:
    # `__Host-` requires Secure + Path=/ + no Domain; browsers may reject it on HTTP.
    return "__Host-resultsdash_session" if cfg.cookie_secure else "resultsdash_session"


def _serializer(cfg: AppConfig) -> Optional[URLSafeTimedSerializer]:
    if not cfg.session_secret:
        return None
    return URLSafeTimedSerializer(secret_key=cfg.session_secret, salt=SESSION_SALT)


def _user_to_json(user: SessionUser) -> str:
    return json.dumps(asdict(user), separators=(",", ":"), sort_keys=True)


def _user_from_dict(data: Any) -> Optional[SessionUser]:
    if not isinstance(data, dict):
        return None
    user_id = str(data.get("id") or "").strip()
    role = str(data.get("role") or "").strip()
    token = str(data.get("access_token") or "").strip()
    if not user_id or not role or not token:
        return None
    email = data.get("email")
    name = data.get("name")
    return SessionUser(
        id=user_id,
        role=role,
        access_token=token,
        email=str(email) if email else None,
        name=str(name) if name else None,
    )


def encode_session(cfg: AppConfig, user: SessionUser) -> Optional[str]:
    # The cookie carries the backend bearer token: it is signed (tamper-proof) and HttpOnly.
    s = _serializer(cfg)
    if s is None:
        return None
    return s.dumps(_user_to_json(user))


def decode_session(cfg: AppConfig, value: str | None) -> Optional[SessionUser]:
    if not value:
        return None
    s = _serializer(cfg)
    if s is None:
        return None
    try:
        raw = s.loads(value, max_age=cfg.session_ttl_seconds)
        return _user_from_dict(json.loads(raw))
    except (BadSignature, BadTimeSignature, ValueError):
        return None


def clear_session_cookie_kwargs(cfg: AppConfig) -> dict:
    return {
        "key": session_cookie_name(cfg),
        "value": "",
        "max_age": 0,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


def session_cookie_kwargs(cfg: AppConfig, value: str) -> dict:
    return {
        "key": session_cookie_name(cfg),
        "value": value,
        "max_age": cfg.session_ttl_seconds,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


class FileSessionStore:
    """CLI session persisted as JSON, readable only by the current user."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def save(self, user: SessionUser) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(_user_to_json(user))
        logger.debug("Session saved to %s", self.path)

    def load(self) -> Optional[SessionUser]:
        """
        Returns None when no session file exists.

        Raises:
            ValueError if the file exists but does not hold a usable session
        """
        if not self.path.exists():
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        user = _user_from_dict(data)
        if user is None:
            raise ValueError(f"Session file {self.path} is incomplete; sign in again")
        return user

    def clear(self) -> bool:
        try:
            self.path.unlink()
            return True
        except FileNotFoundError:
            return False


def get_file_session_store(cfg: Optional[AppConfig] = None) -> FileSessionStore:
    if cfg is None:
        from resultsdash.config import load_config

        cfg = load_config()
    return FileSessionStore(cfg.session_file)
