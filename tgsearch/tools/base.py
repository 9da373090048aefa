"""Tool seam between hosting interfaces and the search engine.

A tool takes JSON-like arguments and returns a ToolResult whose ``output`` is
the text the host hands back to its caller. Hosts list tools through
``ToolRegistry.specs()`` and dispatch through ``ToolRegistry.call()``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class UnknownToolError(LookupError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


@dataclass
class ToolResult:
    """Host-facing result. ``output`` is set for failures too."""

    success: bool
    output: str
    error: str = ""

    @classmethod
    def ok(cls, output: str) -> "ToolResult":
        return cls(success=True, output=output)

    @classmethod
    def fail(cls, output: str, error: str = "") -> "ToolResult":
        return cls(success=False, output=output, error=error)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: dict[str, Any]


class Tool(ABC):
    name: str
    description: str

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the accepted arguments, using wire names."""

    def spec(self) -> ToolSpec:
        return ToolSpec(self.name, self.description, self.input_schema)

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        pass


class ToolRegistry:
    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if not isinstance(tool, Tool):
            raise TypeError(f"Expected Tool instance, got {type(tool)}")
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def specs(self) -> list[ToolSpec]:
        return [tool.spec() for tool in self._tools.values()]

    async def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        tool = self.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return await tool.execute(**(arguments or {}))
