"""Gateway-level response bodies written outside the MCP transport.

Tool results travel inside the protocol envelope produced by the transport;
these models cover what the gateway writes itself: auth rejections,
the fallback internal-error envelope, and the health check body.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from src.constants import JSONRPC_INTERNAL_ERROR, SERVICE_NAME

INTERNAL_ERROR_MESSAGE = "Internal server error"


class AuthErrorBody(BaseModel):
    error: str
    message: str


class JSONRPCErrorData(BaseModel):
    code: int
    message: str


class JSONRPCErrorResponse(BaseModel):
    jsonrpc: Literal["2.0"] = "2.0"
    error: JSONRPCErrorData
    id: str | int | None = None


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    service: str = SERVICE_NAME


def internal_error_envelope(message: str = INTERNAL_ERROR_MESSAGE) -> dict:
    """JSON-RPC error with id null; the request id is unknown at this layer."""
    return JSONRPCErrorResponse(
        error=JSONRPCErrorData(code=JSONRPC_INTERNAL_ERROR, message=message),
    ).model_dump()
