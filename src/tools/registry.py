from __future__ import annotations

from typing import Any

import structlog

from src.infra.errors import ToolNotFoundError
from src.tools.base import BaseTool

logger = structlog.get_logger()


class ToolRegistry:
    """Registry for gateway tools: name -> tool, read-only once frozen.

    Built at startup, then shared by every concurrent request.
    """

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._frozen = False

    def register(self, tool: BaseTool) -> None:
        """Register a tool. Raises ValueError if name already registered."""
        if self._frozen:
            raise RuntimeError(f"Registry is frozen; cannot register {tool.name}")
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool
        logger.info("tool_registered", tool_name=tool.name)

    def freeze(self) -> None:
        """Lock the tool set. Called once startup wiring is complete."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> BaseTool | None:
        """Get a tool by name. Returns None if not found."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[BaseTool]:
        """Return tools in registration order."""
        return list(self._tools.values())

    async def call(self, name: str, arguments: dict | None) -> Any:
        """Look up, validate and execute a tool.

        Raises ToolNotFoundError, InvalidInputError (before any backend call)
        or BackendError.
        """
        tool = self.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        parsed = tool.parse_arguments(arguments)
        return await tool.execute(parsed)
