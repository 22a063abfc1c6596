"""Tool descriptor handed to the orchestration loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Type

from pydantic import BaseModel


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    parameters_schema: Type[BaseModel]
    description: str
    invoke: Callable[[dict[str, Any]], Awaitable[Any]]

    @property
    def json_schema(self) -> dict[str, Any]:
        return self.parameters_schema.model_json_schema()
