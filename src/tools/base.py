from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from src.infra.errors import InvalidInputError

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"

ArgsT = TypeVar("ArgsT", bound=BaseModel)


def object_schema(properties: dict[str, dict], required: list[str]) -> dict:
    """Build a closed draft-07 object schema for a tool's input."""
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }
    if required:
        schema["required"] = required
    schema["additionalProperties"] = False
    schema["$schema"] = JSON_SCHEMA_DRAFT
    return schema


def render_json(value: Any) -> str:
    """Serialize a tool result (or error payload) as 2-space indented JSON text."""
    return json.dumps(value, indent=2, ensure_ascii=False)


class BaseTool(ABC, Generic[ArgsT]):
    """Abstract base class for gateway tools.

    A tool is immutable once registered: name, schema and handler never change.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name exposed to protocol clients."""
        ...

    @property
    @abstractmethod
    def title(self) -> str:
        """Short display name."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict:
        """JSON Schema describing the tool's input. Part of the wire contract."""
        ...

    @property
    @abstractmethod
    def arguments_model(self) -> type[ArgsT]:
        """Pydantic model mirroring `parameters`, used to validate input."""
        ...

    def parse_arguments(self, arguments: dict | None) -> ArgsT:
        """Validate raw arguments. Raises InvalidInputError on any schema violation."""
        try:
            return self.arguments_model.model_validate(arguments or {})
        except ValidationError as e:
            errors = [
                {
                    "loc": ".".join(str(part) for part in err["loc"]) or "(root)",
                    "msg": err["msg"],
                    "type": err["type"],
                }
                for err in e.errors()
            ]
            summary = "; ".join(f"{err['loc']}: {err['msg']}" for err in errors)
            raise InvalidInputError(
                f"Invalid arguments for {self.name}: {summary}", errors=errors,
            ) from e

    @abstractmethod
    async def execute(self, arguments: ArgsT) -> Any:
        """Run the tool against the backend and return its raw, JSON-serializable result.

        Backend failures propagate as BackendError.
        """
        ...
