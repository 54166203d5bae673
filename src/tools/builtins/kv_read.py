from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from src.tools.base import object_schema
from src.tools.builtins.vault_base import VaultKVTool


class ReadSecretArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    path: str
    mount: str | None = None
    version: int | float | None = None


class ReadSecretTool(VaultKVTool[ReadSecretArgs]):
    """Read a KV secret, optionally pinned to a version."""

    @property
    def name(self) -> str:
        return "vault_kv_read"

    @property
    def title(self) -> str:
        return "Read a KV secret"

    @property
    def description(self) -> str:
        return "Read a KV secret from HashiCorp Vault at the specified path and mount point"

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "path": {
                    "type": "string",
                    "description": "The path of the secret to read in Vault (e.g., myapp/config)",
                },
                "mount": {
                    "type": "string",
                    "description": "The mount point in Vault (e.g. secret)",
                },
                "version": {
                    "type": "number",
                    "description": "The version of the secret to read (for KV v2)",
                },
            },
            required=["path"],
        )

    @property
    def arguments_model(self) -> type[ReadSecretArgs]:
        return ReadSecretArgs

    async def execute(self, arguments: ReadSecretArgs) -> Any:
        return await self._client.read_kv_secret(
            self._token, arguments.path, _version_param(arguments.version), arguments.mount,
        )


def _version_param(version: int | float | None) -> int | float | None:
    """Integral numbers go out as integers (2.0 -> 2); the backend judges the rest."""
    if isinstance(version, float) and version.is_integer():
        return int(version)
    return version
