"""Shared pytest fixtures for gateway tests.

Provides an in-memory KV v2 backend served through httpx.MockTransport, so
the real VaultClient code path (URLs, headers, status mapping) is exercised
without a running Vault, plus ASGI and transport fakes for the /mcp dispatch
path.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import anyio
import httpx
import pytest
from starlette.types import Message, Receive, Scope, Send

from src.config.settings import LogSettings, McpSettings, Settings, VaultSettings
from src.vault.client import VaultClient

VAULT_TOKEN = "test-vault-token"
GATEWAY_TOKEN = "test-gateway-token"


@dataclass
class _Version:
    data: dict[str, Any]
    deleted: bool = False


@dataclass
class FakeVault:
    """Minimal KV v2 engine: data/ read-write-delete and metadata/ LIST."""

    token: str = VAULT_TOKEN
    store: dict[tuple[str, str], list[_Version]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    fail_with: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with

        if request.headers.get("X-Vault-Token") != self.token:
            return httpx.Response(403, json={"errors": ["permission denied"]})

        path = request.url.path.removeprefix("/v1/")
        mount, _, rest = path.partition("/")
        kind, _, secret_path = rest.partition("/")

        if kind == "data":
            return self._data(request, mount, secret_path)
        if kind == "metadata" and request.method == "LIST":
            return self._list(mount, secret_path)
        return httpx.Response(404, json={"errors": []})

    def _data(self, request: httpx.Request, mount: str, path: str) -> httpx.Response:
        versions = self.store.setdefault((mount, path), [])
        if request.method == "POST":
            body = json.loads(request.content)
            versions.append(_Version(data=body["data"]))
            return httpx.Response(200, json={"data": self._version_meta(len(versions))})
        if request.method == "DELETE":
            if versions:
                versions[-1].deleted = True
            return httpx.Response(204)
        if request.method == "GET":
            requested = request.url.params.get("version")
            if requested and not requested.isdigit():
                return httpx.Response(400, json={"errors": ["invalid version"]})
            index = int(requested) if requested else len(versions)
            if index < 1 or index > len(versions) or versions[index - 1].deleted:
                return httpx.Response(404, json={"errors": []})
            return httpx.Response(
                200,
                json={
                    "data": {
                        "data": versions[index - 1].data,
                        "metadata": self._version_meta(index),
                    },
                },
            )
        return httpx.Response(405, json={"errors": ["unsupported operation"]})

    def _list(self, mount: str, folder: str) -> httpx.Response:
        prefix = f"{folder.rstrip('/')}/" if folder else ""
        children: set[str] = set()
        for (m, path), versions in self.store.items():
            if m != mount or not versions or not path.startswith(prefix):
                continue
            remainder = path[len(prefix):]
            head, sep, _ = remainder.partition("/")
            children.add(head + ("/" if sep else ""))
        if not children:
            return httpx.Response(404, json={"errors": []})
        return httpx.Response(200, json={"data": {"keys": sorted(children)}})

    @staticmethod
    def _version_meta(version: int) -> dict[str, Any]:
        return {
            "created_time": "2026-01-01T00:00:00Z",
            "deletion_time": "",
            "destroyed": False,
            "version": version,
        }

    def seed(self, path: str, data: dict[str, Any], mount: str = "secret") -> None:
        self.store.setdefault((mount, path), []).append(_Version(data=data))


@pytest.fixture()
def fake_vault() -> FakeVault:
    return FakeVault()


@pytest.fixture()
def vault_settings() -> VaultSettings:
    return VaultSettings(addr="http://vault.test:8200", token=VAULT_TOKEN)


@pytest.fixture()
def vault_client(vault_settings: VaultSettings, fake_vault: FakeVault) -> VaultClient:
    return VaultClient(vault_settings, transport=httpx.MockTransport(fake_vault.handler))


def _make_settings(*, auth_token: str | None = None, cors_origins: str = "*") -> Settings:
    return Settings(
        vault=VaultSettings(addr="http://vault.test:8200", token=VAULT_TOKEN),
        mcp=McpSettings(auth_token=auth_token, cors_origins=cors_origins),
        log=LogSettings(),
    )


@pytest.fixture()
def make_settings():
    """Settings factory built from explicit values so the host environment cannot leak in."""
    return _make_settings


# ---------------------------------------------------------------------------
# ASGI / transport fakes
# ---------------------------------------------------------------------------


class FakeTransport:
    """Stands in for the streamable HTTP transport; delegates to an ASGI handler."""

    def __init__(self, handler: Callable[[Scope, Receive, Send], Awaitable[None]]) -> None:
        self._handler = handler
        self.connected = False
        self.terminated = 0

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[tuple[None, None]]:
        self.connected = True
        yield None, None

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._handler(scope, receive, send)

    async def terminate(self) -> None:
        self.terminated += 1


class FakeServer:
    """Records each run() and idles until its session is cancelled."""

    def __init__(self) -> None:
        self.runs: list[bool] = []

    def create_initialization_options(self) -> object:
        return object()

    async def run(self, read_stream, write_stream, options, *, stateless: bool = False) -> None:
        self.runs.append(stateless)
        await anyio.sleep_forever()


def make_scope(headers: dict[str, str] | None = None, method: str = "POST") -> Scope:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": "/mcp",
        "raw_path": b"/mcp",
        "query_string": b"",
        "root_path": "",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


def make_receive(*messages: Message) -> Receive:
    """Replays messages in order, then blocks like a connection that stays open."""
    queue = list(messages)

    async def receive() -> Message:
        if queue:
            return queue.pop(0)
        await anyio.sleep_forever()
        raise AssertionError("unreachable")

    return receive


@dataclass
class SentMessages:
    messages: list[Message] = field(default_factory=list)

    async def __call__(self, message: Message) -> None:
        self.messages.append(message)

    @property
    def status(self) -> int | None:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return message["status"]
        return None

    @property
    def body(self) -> bytes:
        return b"".join(
            m.get("body", b"") for m in self.messages if m["type"] == "http.response.body"
        )


REQUEST_BODY: Message = {
    "type": "http.request",
    "body": b'{"jsonrpc":"2.0","id":1,"method":"tools/list"}',
    "more_body": False,
}
DISCONNECT: Message = {"type": "http.disconnect"}
