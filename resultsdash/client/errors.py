"""Errors raised by the results API client.

Every failure surfaces as an `ApiError` subclass carrying a human-readable message;
callers decide how to present it (console HTTP status, CLI stderr line).
"""

from __future__ import annotations

from typing import Optional


class ApiError(Exception):
    """Base class for all results API client failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(ApiError):
    """Session unavailable, no token for a protected endpoint, or login rejected."""


class TransportError(ApiError):
    """Network-level failure before any HTTP response was received."""


class HttpError(ApiError):
    """Backend answered with a non-2xx status."""

    def __init__(self, message: str, status: int, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason

    def __repr__(self) -> str:
        return f"HttpError(status={self.status}, message={self.message!r})"


class DecodeError(ApiError):
    """A successful response whose body could not be decoded as expected."""


class InvalidRequestError(ApiError):
    """The request body could not be serialized."""


class UploadRejectedError(ApiError):
    """Backend processed a CSV upload request but reported `success: false`."""
