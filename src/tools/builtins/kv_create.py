from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from src.tools.base import object_schema
from src.tools.builtins.vault_base import VaultKVTool


class CreateSecretArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    path: str
    data: dict[str, Any]
    mount: str | None = None


class CreateSecretTool(VaultKVTool[CreateSecretArgs]):
    """Write a JSON object as a new version of a KV secret."""

    @property
    def name(self) -> str:
        return "vault_kv_create"

    @property
    def title(self) -> str:
        return "Create a KV secret"

    @property
    def description(self) -> str:
        return "Create a KV secret in HashiCorp Vault at the specified path"

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "path": {
                    "type": "string",
                    "description": "The path to the secret in Vault (e.g. myapp/config)",
                },
                "data": {
                    "type": "object",
                    "additionalProperties": {},
                    "description": "The secret data to write as a JSON object",
                },
                "mount": {
                    "type": "string",
                    "description": "The mount point in Vault (e.g. secret)",
                },
            },
            required=["path", "data"],
        )

    @property
    def arguments_model(self) -> type[CreateSecretArgs]:
        return CreateSecretArgs

    async def execute(self, arguments: CreateSecretArgs) -> Any:
        return await self._client.create_kv_secret(
            self._token, arguments.path, arguments.data, arguments.mount,
        )
