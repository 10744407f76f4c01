"""
Authenticated fetch client for the results backend.

One call is one request/response exchange: the token is looked up, headers are
negotiated, the body is encoded per its variant, and the response is decoded.
No retries; failures are raised as `ApiError` subclasses.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import requests
from requests.structures import CaseInsensitiveDict

from resultsdash.auth.tokens import TokenProvider
from resultsdash.client.bodies import JsonBody, MultipartBody, RequestBody
from resultsdash.client.decode import decode_response
from resultsdash.client.errors import AuthenticationError, DecodeError, TransportError

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/auth/login"
JSON_CONTENT_TYPE = "application/json"
HTML_CONTENT_TYPE = "text/html"


def is_login_endpoint(endpoint: str) -> bool:
    return endpoint.startswith(LOGIN_ENDPOINT)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.timeout = timeout
        self._session = session or requests.Session()

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    def _current_token(self) -> Optional[str]:
        try:
            return self.token_provider.get_token()
        except Exception as e:
            # Whatever backs the session (cookie, file, callback) failed: not a network error.
            logger.error("Error retrieving session token: %s", e)
            raise AuthenticationError("Failed to retrieve authentication session.") from e

    def build_headers(
        self,
        endpoint: str,
        *,
        body: Optional[RequestBody] = None,
        headers: Optional[Mapping[str, str]] = None,
        accept_html: bool = False,
    ) -> CaseInsensitiveDict:
        """Negotiate request headers; raises AuthenticationError for a protected endpoint without a token."""
        out: CaseInsensitiveDict = CaseInsensitiveDict(headers or {})

        if isinstance(body, MultipartBody):
            # requests writes `multipart/form-data; boundary=...` itself.
            out.pop("Content-Type", None)
        elif "Content-Type" not in out:
            out["Content-Type"] = JSON_CONTENT_TYPE

        if accept_html:
            out["Accept"] = HTML_CONTENT_TYPE
        elif "Accept" not in out:
            out["Accept"] = JSON_CONTENT_TYPE

        token = self._current_token()
        if token:
            out["Authorization"] = f"Bearer {token}"
        elif not is_login_endpoint(endpoint):
            logger.warning("No access token for request to %s", endpoint)
            raise AuthenticationError(f"Not signed in: an access token is required for {endpoint}.")
        return out

    def fetch_api(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        body: Optional[RequestBody] = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        accept_html: bool = False,
    ) -> Any:
        """
        Send one request and return the decoded value.

        Returns parsed JSON, raw HTML text, or None for 204 responses.

        Raises:
            AuthenticationError, TransportError, HttpError, DecodeError, InvalidRequestError
        """
        request_headers = self.build_headers(endpoint, body=body, headers=headers, accept_html=accept_html)

        kwargs: Dict[str, Any] = {"headers": dict(request_headers), "timeout": self.timeout}
        if params:
            kwargs["params"] = params
        if isinstance(body, JsonBody):
            kwargs["data"] = body.encode()
        elif isinstance(body, MultipartBody):
            kwargs.update(body.requests_kwargs())

        logger.debug("Requesting %s %s", method, endpoint)
        try:
            response = self._session.request(method, self.url_for(endpoint), **kwargs)
        except requests.RequestException as e:
            logger.error("API call to %s failed: %s", endpoint, e)
            raise TransportError(f"Request to {endpoint} failed: {e}") from e

        return decode_response(response).value

    def fetch_html(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> str:
        value = self.fetch_api(endpoint, method=method, headers=headers, params=params, accept_html=True)
        if not isinstance(value, str):
            logger.error("Expected HTML text from %s, got %s", endpoint, type(value).__name__)
            raise DecodeError("Failed to retrieve HTML content.")
        return value


def client_from_config(token_provider: TokenProvider, *, session: Optional[requests.Session] = None) -> ApiClient:
    from resultsdash.config import load_config

    cfg = load_config()
    return ApiClient(cfg.api_base_url, token_provider, session=session, timeout=cfg.request_timeout_seconds)
