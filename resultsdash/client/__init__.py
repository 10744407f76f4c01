"""
Client for the student results REST API.

- `ApiClient.fetch_api` / `fetch_html`: authenticated single-attempt requests
- `decode_response`: response -> json | html | empty, or `HttpError`
- body variants: `JsonBody`, `MultipartBody`
"""

from resultsdash.client.bodies import FilePart, JsonBody, MultipartBody
from resultsdash.client.decode import ResponseOutcome, decode_response
from resultsdash.client.errors import (
    ApiError,
    AuthenticationError,
    DecodeError,
    HttpError,
    InvalidRequestError,
    TransportError,
    UploadRejectedError,
)
from resultsdash.client.http import ApiClient, client_from_config

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthenticationError",
    "DecodeError",
    "FilePart",
    "HttpError",
    "InvalidRequestError",
    "JsonBody",
    "MultipartBody",
    "ResponseOutcome",
    "TransportError",
    "UploadRejectedError",
    "client_from_config",
    "decode_response",
]
