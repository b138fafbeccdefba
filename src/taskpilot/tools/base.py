"""Tool base types and abstractions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from taskpilot.errors import ToolArgumentsError


class ToolParam(BaseModel):
    """Pydantic model for tool parameter validation.

    Unknown keys are dropped: models tend to send extra fields.
    """

    model_config = ConfigDict(extra="ignore")


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Tool description handed to the completion provider."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(slots=True)
class ToolSpec:
    """Specification for a tool."""

    name: str
    description: str
    parameters: dict[str, Any]
    requires_approval: bool = False

    @classmethod
    def from_params(
        cls,
        name: str,
        description: str,
        params: type[ToolParam],
        *,
        requires_approval: bool = False,
    ) -> ToolSpec:
        """Build a spec whose JSON schema comes from a parameter model."""
        schema = params.model_json_schema()
        schema.pop("title", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        return cls(
            name=name,
            description=description,
            parameters=schema,
            requires_approval=requires_approval,
        )

    def to_definition(self) -> ToolDefinition:
        """Convert to ToolDefinition for LLM consumption."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )


@dataclass
class Tool:
    """A registered tool: spec, argument model and execute coroutine."""

    spec: ToolSpec
    params: type[ToolParam]
    execute: Callable[[Any], Awaitable[str]]
    tags: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def requires_approval(self) -> bool:
        return self.spec.requires_approval

    def validate(self, arguments: dict[str, Any]) -> ToolParam:
        try:
            return self.params.model_validate(arguments)
        except ValidationError as exc:
            reasons = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ToolArgumentsError(self.name, reasons) from exc

    def to_definition(self) -> ToolDefinition:
        return self.spec.to_definition()
