from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from src.tools.base import object_schema
from src.tools.builtins.vault_base import VaultKVTool


class DeleteSecretArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    path: str


class DeleteSecretTool(VaultKVTool[DeleteSecretArgs]):
    """Soft-delete the latest version of a secret in the default mount."""

    @property
    def name(self) -> str:
        return "vault_kv_delete"

    @property
    def title(self) -> str:
        return "Delete a KV secret"

    @property
    def description(self) -> str:
        return "Delete the latest KV secret from HashiCorp Vault at the specified path"

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "path": {
                    "type": "string",
                    "description": (
                        'The path to the secret in Vault (e.g., "secret/data/myapp/config")'
                    ),
                },
            },
            required=["path"],
        )

    @property
    def arguments_model(self) -> type[DeleteSecretArgs]:
        return DeleteSecretArgs

    async def execute(self, arguments: DeleteSecretArgs) -> Any:
        return await self._client.delete_latest_kv_secret(self._token, arguments.path)
