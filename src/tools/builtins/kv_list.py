from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from src.tools.base import object_schema
from src.tools.builtins.vault_base import VaultKVTool


class ListSecretsArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    mount: str | None = None
    folder: str | None = None


class ListSecretsTool(VaultKVTool[ListSecretsArgs]):
    """List secret names under a folder; the mount root when no folder is given."""

    @property
    def name(self) -> str:
        return "vault_kv_list"

    @property
    def title(self) -> str:
        return "List KV secrets"

    @property
    def description(self) -> str:
        return "List KV secrets in HashiCorp Vault at the specified path"

    @property
    def parameters(self) -> dict:
        return object_schema(
            {
                "mount": {
                    "type": "string",
                    "description": "The mount point in Vault (e.g. secret)",
                },
                "folder": {
                    "type": "string",
                    "description": "The path to the secret in Vault (e.g. myapp)",
                },
            },
            required=[],
        )

    @property
    def arguments_model(self) -> type[ListSecretsArgs]:
        return ListSecretsArgs

    async def execute(self, arguments: ListSecretsArgs) -> list[str]:
        return await self._client.list_kv_secrets(
            self._token, arguments.folder, arguments.mount,
        )
