from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from crawlmcp.infra.errors import ToolError


class ToolArguments(BaseModel):
    """Base for per-tool argument models.

    Extra keys are kept: the published schema documents arguments, it does
    not police them. Only fields a handler cannot run without are required.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ToolOptions(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


ArgsT = TypeVar("ArgsT", bound=ToolArguments)


@dataclass(frozen=True)
class ToolDefinition:
    """Static catalog entry. Created once at startup, never mutated."""

    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def _describe_validation_error(tool_name: str, exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
        problems.append(f"{loc}: {err.get('msg', 'invalid')}")
    return f"Invalid arguments for {tool_name}: " + "; ".join(problems)


class BaseTool(ABC, Generic[ArgsT]):
    """Abstract base class for router tools.

    Subclasses set ``args_model`` and implement ``execute``; ``run`` is the
    entry point used by the dispatcher.
    """

    args_model: ClassVar[type[ToolArguments]] = ToolArguments

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name used in tools/call."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict:
        """JSON Schema describing the tool's input parameters."""
        ...

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name, description=self.description, input_schema=self.parameters,
        )

    def parse_arguments(self, arguments: Any) -> ArgsT:
        """Coerce raw arguments into the tool's model. Raises ToolError(INVALID_ARGS)."""
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolError(
                f"Invalid arguments for {self.name}: expected an object",
                code="INVALID_ARGS",
            )
        try:
            return self.args_model.model_validate(arguments)  # type: ignore[return-value]
        except ValidationError as e:
            raise ToolError(
                _describe_validation_error(self.name, e), code="INVALID_ARGS",
            ) from e

    async def run(self, arguments: Any) -> Any:
        return await self.execute(self.parse_arguments(arguments))

    @abstractmethod
    async def execute(self, args: ArgsT) -> Any:
        """Execute the tool and return a JSON-serializable payload.

        Any exception raised here is converted to an error result by the dispatcher.
        """
        ...
