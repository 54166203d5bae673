from __future__ import annotations

from typing import TYPE_CHECKING

from src.tools.builtins.kv_create import CreateSecretTool
from src.tools.builtins.kv_delete import DeleteSecretTool
from src.tools.builtins.kv_list import ListSecretsTool
from src.tools.builtins.kv_read import ReadSecretTool
from src.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from src.vault.client import VaultClient


def register_builtins(registry: ToolRegistry, client: VaultClient, token: str) -> None:
    """Register the four KV tools with the registry.

    Every tool calls the backend with the same process-wide token.
    """
    registry.register(ReadSecretTool(client, token))
    registry.register(CreateSecretTool(client, token))
    registry.register(ListSecretsTool(client, token))
    registry.register(DeleteSecretTool(client, token))
