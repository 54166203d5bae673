"""Custom exception hierarchy for the Vault MCP gateway.

All application-specific exceptions inherit from VaultMCPError,
which carries an error code for error payload mapping.
"""

from __future__ import annotations

from typing import Any


class VaultMCPError(Exception):
    """Base exception for all gateway errors."""

    def __init__(self, message: str, *, code: str = "InternalError") -> None:
        super().__init__(message)
        self.code = code

    def to_payload(self) -> dict[str, Any]:
        """JSON-serializable form used in tool error results."""
        return {"error": self.code, "message": str(self)}


class GatewayError(VaultMCPError):
    """Errors in the HTTP / transport layer."""

    def __init__(self, message: str, *, code: str = "GatewayError") -> None:
        super().__init__(message, code=code)


class ToolError(VaultMCPError):
    """Errors during tool execution. Surfaced as tool results, not transport failures."""

    def __init__(self, message: str, *, code: str = "ToolError") -> None:
        super().__init__(message, code=code)


class InvalidInputError(ToolError):
    """Tool arguments failed schema validation. Raised before any backend call."""

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message, code="InvalidInput")
        self.errors = errors or []

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ToolNotFoundError(ToolError):
    """No tool registered under the requested name."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}", code="ToolNotFound")
        self.tool_name = tool_name


class BackendError(ToolError):
    """Failure talking to the secret store: not found, denied, timeout, network.

    kind is one of: not_found, permission_denied, timeout, network,
    http_error, invalid_response.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        status_code: int | None = None,
        errors: list[str] | None = None,
    ) -> None:
        super().__init__(message, code="BackendError")
        self.kind = kind
        self.status_code = status_code
        self.errors = errors or []

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["kind"] = self.kind
        if self.status_code is not None:
            payload["status"] = self.status_code
        if self.errors:
            payload["errors"] = self.errors
        return payload
