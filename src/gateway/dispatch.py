"""Core dispatch for /mcp: authenticate → bind session → handle → tear down.

Gateway-level errors (auth) short-circuit before any session exists.
Tool-level errors never reach this layer: the MCP server shapes them into
tool results. Anything else is an internal error, written as a JSON-RPC
envelope only when no part of the response has been sent yet.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from mcp.server.lowlevel import Server
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import Receive, Scope, Send

from src.gateway.auth import AuthResult, BearerAuthenticator
from src.gateway.protocol import AuthErrorBody, internal_error_envelope
from src.gateway.session import RequestSession, ResponseGuard, Transport, new_stateless_transport
from src.infra.errors import GatewayError

logger = structlog.get_logger()


def auth_error_response(result: AuthResult) -> JSONResponse:
    body = AuthErrorBody(error=result.error or "Unauthorized", message=result.message or "")
    return JSONResponse(body.model_dump(), status_code=result.status_code)


class McpEndpoint:
    """ASGI endpoint serving the MCP protocol with one fresh transport per request."""

    def __init__(
        self,
        server: Server,
        authenticator: BearerAuthenticator,
        *,
        transport_factory: Callable[[], Transport] = new_stateless_transport,
    ) -> None:
        self._server = server
        self._authenticator = authenticator
        self._transport_factory = transport_factory

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            raise GatewayError(f"Unsupported ASGI scope type: {scope['type']}")

        request = Request(scope)
        client = request.client.host if request.client else None
        structlog.contextvars.bind_contextvars(method=request.method, client=client)
        try:
            logger.info("mcp_request")

            result = self._authenticator.authenticate(request.headers)
            if not result.allowed:
                await auth_error_response(result)(scope, receive, send)
                return

            await self._dispatch(scope, receive, send)
        finally:
            structlog.contextvars.unbind_contextvars("method", "client")

    async def _dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        guard = ResponseGuard(send)
        try:
            async with RequestSession(self._server, self._transport_factory()) as session:
                await session.handle(scope, receive, guard)
        except Exception:
            logger.exception("mcp_request_failed", response_started=guard.started)
            if guard.started or guard.disconnected:
                return
            response = JSONResponse(internal_error_envelope(), status_code=500)
            await response(scope, receive, guard.send)
