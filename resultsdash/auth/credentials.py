"""Credentials login delegated to the backend's `/auth/login` endpoint."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from resultsdash.auth.models import SessionUser
from resultsdash.client.bodies import JsonBody
from resultsdash.client.errors import AuthenticationError, HttpError
from resultsdash.client.http import LOGIN_ENDPOINT, ApiClient
from resultsdash.core.models import LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

ROLES = ("admin", "student")


def authorize(client: ApiClient, email: str, password: str, role: str) -> SessionUser:
    """
    Exchange credentials for a backend-issued bearer token.

    Args:
        client: API client; no token is needed for the login endpoint
        email: Account email
        password: Plain text password (forwarded, never stored)
        role: "admin" or "student"

    Returns:
        SessionUser holding the access token

    Raises:
        AuthenticationError for missing credentials, rejected logins and malformed responses;
        TransportError when the backend is unreachable
    """
    email = (email or "").strip()
    role = (role or "").strip().lower()
    if not email or not password or not role:
        raise AuthenticationError("Email, password, and role are required.")

    logger.info("Attempting login via backend %s for role: %s", client.url_for(LOGIN_ENDPOINT), role)
    body = JsonBody.from_model(LoginRequest(email=email, password=password, role=role))
    try:
        payload = client.fetch_api(LOGIN_ENDPOINT, method="POST", body=body)
    except HttpError as e:
        logger.warning("Backend login failed: status=%d", e.status)
        raise AuthenticationError(e.message or f"Login failed. Status: {e.status}") from e

    try:
        login = LoginResponse.model_validate(payload)
    except ValidationError as e:
        raise AuthenticationError("Invalid response received from authentication server.") from e

    if not login.token or not login.id:
        logger.error("Backend login succeeded but response is missing token/id")
        raise AuthenticationError("Invalid response received from authentication server.")

    logger.info("Backend login successful for: %s", login.email or email)
    return SessionUser(
        id=str(login.id),
        role=(login.role or role).lower(),
        access_token=login.token,
        email=login.email or email,
        name=login.name,
    )
