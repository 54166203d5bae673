"""Async client for the KV v2 secrets engine of a Vault-compatible store.

Every call opens its own httpx.AsyncClient, so the instance holds only
immutable configuration and can be shared by concurrent requests.
No retries and no caching: each call hits the backend once, live.
"""

from __future__ import annotations

import ssl
from typing import Any

import anyio
import httpx
import structlog

from src.config.settings import VaultSettings
from src.infra.errors import BackendError

logger = structlog.get_logger()

_STATUS_KINDS: dict[int, str] = {
    401: "permission_denied",
    403: "permission_denied",
    404: "not_found",
}


class VaultClient:
    """Configured handle to the secret store (base URL, TLS trust, timeout)."""

    def __init__(
        self,
        settings: VaultSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.base_url
        self._timeout_seconds = settings.timeout_seconds
        self._timeout = httpx.Timeout(settings.timeout_seconds)
        self._default_mount = settings.kv_mount
        self._transport = transport
        self._verify: ssl.SSLContext | bool = True
        if settings.cacert is not None:
            self._verify = ssl.create_default_context(cafile=str(settings.cacert))

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def default_mount(self) -> str:
        return self._default_mount

    async def read_kv_secret(
        self,
        token: str,
        path: str,
        version: int | float | None = None,
        mount: str | None = None,
    ) -> Any:
        """Read the latest (or a specific) version of the secret at path."""
        params = {"version": version} if version is not None else None
        return await self._request(
            "GET", f"{self._mount(mount)}/data/{path}", token, params=params,
        )

    async def create_kv_secret(
        self,
        token: str,
        path: str,
        data: dict[str, Any],
        mount: str | None = None,
    ) -> Any:
        """Write data as a new version of the secret at path."""
        return await self._request(
            "POST", f"{self._mount(mount)}/data/{path}", token, json={"data": data},
        )

    async def list_kv_secrets(
        self,
        token: str,
        folder: str | None = None,
        mount: str | None = None,
    ) -> list[str]:
        """List secret names under folder (mount root when folder is empty)."""
        result = await self._request(
            "LIST", f"{self._mount(mount)}/metadata/{folder or ''}", token,
        )
        if not isinstance(result, dict) or not isinstance(result.get("keys", []), list):
            raise BackendError(
                "Unexpected list response from Vault", kind="invalid_response",
            )
        return list(result.get("keys", []))

    async def delete_latest_kv_secret(
        self,
        token: str,
        path: str,
        mount: str | None = None,
    ) -> Any:
        """Soft-delete the latest version at path. Older versions are untouched."""
        return await self._request("DELETE", f"{self._mount(mount)}/data/{path}", token)

    def _mount(self, mount: str | None) -> str:
        return mount or self._default_mount

    async def _request(
        self,
        method: str,
        url_path: str,
        token: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        log = logger.bind(method=method, vault_path=url_path)
        try:
            # httpx bounds each phase; the deadline bounds the whole call
            with anyio.fail_after(self._timeout_seconds):
                async with httpx.AsyncClient(
                    base_url=self._base_url,
                    timeout=self._timeout,
                    verify=self._verify,
                    transport=self._transport,
                ) as client:
                    response = await client.request(
                        method,
                        url_path,
                        headers={"X-Vault-Token": token},
                        params=params,
                        json=json,
                    )
        except (httpx.TimeoutException, TimeoutError) as e:
            log.warning("vault_request_failed", kind="timeout", error=str(e) or type(e).__name__)
            raise BackendError(
                f"Vault request timed out after {self._timeout_seconds}s", kind="timeout",
            ) from e
        except httpx.TransportError as e:
            log.warning("vault_request_failed", kind="network", error=str(e))
            raise BackendError(f"Vault request failed: {e}", kind="network") from e

        if response.is_error:
            errors = _error_messages(response)
            kind = _STATUS_KINDS.get(response.status_code, "http_error")
            log.warning(
                "vault_request_failed", kind=kind, status=response.status_code, errors=errors,
            )
            detail = "; ".join(errors) if errors else response.reason_phrase
            raise BackendError(
                f"Vault returned {response.status_code}: {detail}",
                kind=kind,
                status_code=response.status_code,
                errors=errors,
            )

        log.debug("vault_request_ok", status=response.status_code)
        return _parse_body(response)


def _parse_body(response: httpx.Response) -> Any:
    """Unwrap the envelope: Vault puts the payload under a top-level "data" key."""
    if response.status_code == 204 or not response.content:
        return {}
    try:
        body = response.json()
    except ValueError as e:
        raise BackendError(
            "Vault returned a non-JSON response",
            kind="invalid_response",
            status_code=response.status_code,
        ) from e
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return body


def _error_messages(response: httpx.Response) -> list[str]:
    try:
        body = response.json()
    except ValueError:
        return []
    if isinstance(body, dict) and isinstance(body.get("errors"), list):
        return [str(e) for e in body["errors"]]
    return []
