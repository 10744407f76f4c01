"""
Pytest config.

Local imports like `import resultsdash` rely on the repo root being on sys.path. When
invoking a global `pytest` entrypoint without installing the project that doesn't happen
reliably during collection, so we pin it here.
"""

from __future__ import annotations

import sys
from http import HTTPStatus
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
import requests


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """
    Every test gets a fresh config and provider singleton, and a session file under tmp_path
    so nothing touches the developer's real `~/.config/resultsdash`.
    """
    from resultsdash.config import load_config
    from resultsdash.providers.results_provider import set_results_provider

    for name in ("RESULTS_API_URL", "NEXT_PUBLIC_API_URL", "AUTH_SESSION_SECRET", "AUTH_COOKIE_SECURE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RESULTSDASH_SESSION_FILE", str(tmp_path / "session.json"))
    load_config.cache_clear()
    set_results_provider(None)
    yield
    load_config.cache_clear()
    set_results_provider(None)


def build_response(
    status: int = 200,
    body: Any = b"",
    *,
    content_type: Optional[str] = "application/json",
    reason: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """Build a real `requests.Response` without any network I/O."""
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason if reason is not None else HTTPStatus(status).phrase
    if isinstance(body, str):
        body = body.encode("utf-8")
    resp._content = body
    resp.encoding = "utf-8"
    if content_type:
        resp.headers["Content-Type"] = content_type
    for k, v in (headers or {}).items():
        resp.headers[k] = v
    resp.url = "http://backend.test/api"
    return resp


class FakeSession:
    """Stands in for `requests.Session`: records calls and replays queued responses."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list = []

    def queue(self, response: Any) -> None:
        self.responses.append(response)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        nxt = self.responses.pop(0)
        if isinstance(nxt, BaseException):
            raise nxt
        return nxt

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()
