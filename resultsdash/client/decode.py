"""Turn a raw `requests.Response` into a typed outcome, or raise.

Outcomes:
- json: default for successful responses
- html: `text/html` payloads (semester reports), returned unmodified
- empty: 204 No Content

Failed responses raise `HttpError`. The message is extracted best-effort:
JSON `message`/`error` field, then a bounded text preview, then a generic
"API Error: <status> <reason>". A failure while extracting never hides the HTTP failure.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional

import requests

from resultsdash.client.errors import DecodeError, HttpError

logger = logging.getLogger(__name__)

# Bytes of a non-JSON error body considered for the text preview.
ERROR_BODY_READ_LIMIT = 8192
# Characters of a non-JSON error body kept in the error message.
ERROR_PREVIEW_CHARS = 200


@dataclass(frozen=True)
class ResponseOutcome:
    kind: Literal["json", "html", "empty"]
    value: Any = None
    status: int = 200


def _content_type(response: requests.Response) -> str:
    return (response.headers.get("Content-Type") or "").lower()


def _generic_error_message(response: requests.Response) -> str:
    return f"API Error: {response.status_code} {response.reason or ''}".rstrip()


def _error_body(response: requests.Response) -> Optional[bytes]:
    try:
        return response.content or b""
    except (requests.RequestException, RuntimeError) as e:
        # Body could not be read (connection dropped mid-body, stream already consumed).
        logger.debug("Could not read error response body: %s", e)
        return None


def _decode_text(raw: bytes, encoding: Optional[str]) -> str:
    try:
        return raw.decode(encoding or "utf-8", errors="replace")
    except (LookupError, TypeError):
        # Unknown charset label from the server.
        return raw.decode("utf-8", errors="replace")


def _message_from_json(raw: bytes, encoding: Optional[str]) -> Optional[str]:
    try:
        payload = json.loads(_decode_text(raw, encoding))
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    for key in ("message", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def extract_error_message(response: requests.Response) -> str:
    generic = _generic_error_message(response)
    raw = _error_body(response)
    if not raw or not raw.strip():
        return generic

    message = _message_from_json(raw, response.encoding)
    if message is not None:
        return message
    if "json" in _content_type(response):
        # Structured body without a usable message field.
        return generic

    text = _decode_text(raw[:ERROR_BODY_READ_LIMIT], response.encoding)
    preview = text[:ERROR_PREVIEW_CHARS]
    if len(raw) > ERROR_BODY_READ_LIMIT or len(text) > ERROR_PREVIEW_CHARS:
        preview += "..."
    return f"{generic} - Response: {preview}"


def decode_response(response: requests.Response) -> ResponseOutcome:
    status = response.status_code
    if status >= 400:
        message = extract_error_message(response)
        logger.warning("API error response: status=%d message=%s", status, message)
        raise HttpError(message, status, reason=response.reason)

    if "text/html" in _content_type(response):
        return ResponseOutcome(kind="html", value=response.text, status=status)

    if status == 204:
        return ResponseOutcome(kind="empty", value=None, status=status)

    try:
        return ResponseOutcome(kind="json", value=response.json(), status=status)
    except ValueError as e:
        # requests raises a ValueError subclass (requests.JSONDecodeError) for malformed bodies.
        logger.debug("Could not parse successful response as JSON: %s", e)
        raise DecodeError("Received invalid JSON response from server.") from e
