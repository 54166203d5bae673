from __future__ import annotations

from typing import TYPE_CHECKING

from src.tools.base import ArgsT, BaseTool

if TYPE_CHECKING:
    from src.vault.client import VaultClient


class VaultKVTool(BaseTool[ArgsT]):
    """Base for tools that call the KV v2 engine with the process-wide token."""

    def __init__(self, client: VaultClient, token: str) -> None:
        self._client = client
        self._token = token
