"""Per-request MCP transport lifecycle.

Every /mcp request gets a fresh StreamableHTTPServerTransport with no session
id (stateless mode), connected to the shared server inside a private task
group. The session is torn down on every exit path: normal completion,
handler error, or client disconnect. close() is idempotent.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Protocol

import anyio
import structlog
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.types import Message, Receive, Scope, Send

logger = structlog.get_logger()


class Transport(Protocol):
    """The slice of StreamableHTTPServerTransport the gateway relies on."""

    def connect(self) -> Any: ...

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None: ...

    async def terminate(self) -> None: ...


def new_stateless_transport() -> StreamableHTTPServerTransport:
    return StreamableHTTPServerTransport(
        mcp_session_id=None,
        is_json_response_enabled=True,
    )


class ResponseGuard:
    """Wraps ASGI send: tracks whether a response started and drops writes after disconnect."""

    def __init__(self, send: Send) -> None:
        self._send = send
        self.started = False
        self.completed = False
        self.disconnected = False

    async def send(self, message: Message) -> None:
        if self.disconnected:
            return
        if message["type"] == "http.response.start":
            self.started = True
        elif message["type"] == "http.response.body" and not message.get("more_body", False):
            self.completed = True
        await self._send(message)


class RequestSession:
    """One-shot transport bound to the shared MCP server for a single request.

    Usage:
        async with RequestSession(server) as session:
            await session.handle(scope, receive, guard)
    """

    def __init__(self, server: Server, transport: Transport | None = None) -> None:
        self._server = server
        self._transport: Transport = transport or new_stateless_transport()
        self._task_group: TaskGroup | None = None
        self._guard: ResponseGuard | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> RequestSession:
        self._task_group = anyio.create_task_group()
        await self._task_group.__aenter__()
        try:
            await self._task_group.start(self._serve)
        except BaseException:
            self._task_group.cancel_scope.cancel()
            await self._task_group.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        assert self._task_group is not None
        try:
            await self.close()
        finally:
            self._task_group.cancel_scope.cancel()
        return await self._task_group.__aexit__(exc_type, exc, tb)

    async def _serve(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        async with self._transport.connect() as (read_stream, write_stream):
            task_status.started()
            try:
                await self._server.run(
                    read_stream,
                    write_stream,
                    self._server.create_initialization_options(),
                    stateless=True,
                )
            except Exception:
                logger.exception("mcp_session_crashed")

    async def handle(self, scope: Scope, receive: Receive, guard: ResponseGuard) -> None:
        """Hand the request to the transport; watch for a client disconnect meanwhile."""
        assert self._task_group is not None, "RequestSession must be entered first"
        self._guard = guard
        body_received = anyio.Event()

        async def tracked_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request" and not message.get("more_body", False):
                body_received.set()
            elif message["type"] == "http.disconnect":
                await self._on_disconnect()
            return message

        self._task_group.start_soon(self._watch_disconnect, receive, body_received)
        await self._transport.handle_request(scope, tracked_receive, guard.send)

    async def _watch_disconnect(self, receive: Receive, body_received: anyio.Event) -> None:
        # The transport stops reading once the body is in; from then on this task
        # is the only reader and only a disconnect can arrive.
        await body_received.wait()
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
        await self._on_disconnect()

    async def _on_disconnect(self) -> None:
        if self._guard is None or self._guard.completed or self._closed:
            return
        logger.info("mcp_client_disconnected")
        self._guard.disconnected = True
        await self.close()
        assert self._task_group is not None
        self._task_group.cancel_scope.cancel()

    async def close(self) -> None:
        """Terminate the transport. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._transport.terminate()
        except Exception:
            logger.exception("mcp_session_teardown_failed")
        logger.debug("mcp_session_closed")
