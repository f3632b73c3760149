from __future__ import annotations

import structlog

from crawlmcp.tools.base import BaseTool, ToolDefinition

logger = structlog.get_logger()


class ToolRegistry:
    """Tool catalog: name -> tool. Populated at startup, read-only afterwards."""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool. Raises ValueError if name already registered."""
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool
        logger.info("tool_registered", tool_name=tool.name)

    def get(self, name: str) -> BaseTool | None:
        """Get a tool by name. Returns None if not found."""
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> list[str]:
        return list(self._tools)

    def list_definitions(self) -> list[ToolDefinition]:
        """Catalog in registration order."""
        return [tool.definition() for tool in self._tools.values()]

    def get_tools_schema(self) -> list[dict]:
        """Return the catalog in tools/list wire format.

        Output format:
        [{"name": ..., "description": ..., "inputSchema": ...}]
        """
        return [definition.to_wire() for definition in self.list_definitions()]
