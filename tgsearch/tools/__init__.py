from tgsearch.tools.base import Tool, ToolRegistry, ToolResult, ToolSpec, UnknownToolError
from tgsearch.tools.search_messages import SearchMessagesTool

__all__ = [
    "SearchMessagesTool",
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "ToolSpec",
    "UnknownToolError",
]
