"""Bearer-token gate for the MCP endpoint.

A shared-secret check, not per-user auth: on success nothing is attached
to the request. With no token configured every request is allowed.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass

import structlog
from starlette.datastructures import Headers

logger = structlog.get_logger()

MISSING_HEADER_MESSAGE = "Missing Authorization header"
INVALID_FORMAT_MESSAGE = "Invalid Authorization header format. Expected: Bearer <token>"
INVALID_TOKEN_MESSAGE = "Invalid authentication token"


@dataclass(frozen=True)
class AuthResult:
    allowed: bool
    status_code: int = 200
    error: str | None = None
    message: str | None = None

    @classmethod
    def allow(cls) -> AuthResult:
        return cls(allowed=True)

    @classmethod
    def reject(cls, status_code: int, error: str, message: str) -> AuthResult:
        return cls(allowed=False, status_code=status_code, error=error, message=message)


class BearerAuthenticator:
    """Validates `Authorization: Bearer <token>` against a configured value."""

    def __init__(self, expected_token: str | None) -> None:
        self._expected_token = expected_token or None

    @property
    def enabled(self) -> bool:
        return self._expected_token is not None

    def authenticate(self, headers: Headers) -> AuthResult:
        """Check the request headers; lookups rely on Headers being case-insensitive."""
        if self._expected_token is None:
            logger.debug("auth_disabled")
            return AuthResult.allow()

        auth_header = headers.get("authorization")
        if not auth_header:
            logger.info("auth_rejected", reason="missing_header")
            return AuthResult.reject(401, "Unauthorized", MISSING_HEADER_MESSAGE)

        parts = auth_header.split(" ")
        if len(parts) != 2 or parts[0] != "Bearer":
            logger.info("auth_rejected", reason="invalid_format")
            return AuthResult.reject(401, "Unauthorized", INVALID_FORMAT_MESSAGE)

        if not hmac.compare_digest(parts[1].encode(), self._expected_token.encode()):
            logger.info("auth_rejected", reason="invalid_token")
            return AuthResult.reject(403, "Forbidden", INVALID_TOKEN_MESSAGE)

        logger.debug("auth_ok")
        return AuthResult.allow()
