"""
Tool system package for Shop Concierge.

Declares the tools the model may call and dispatches invocations to them.
"""

from .tools import (
    CatalogSearchTool,
    Tool,
    ToolCall,
    ToolDefinition,
    ToolParameter,
    ToolRegistry,
    ToolResult,
    build_tool_registry,
)

__all__ = [
    "CatalogSearchTool",
    "Tool",
    "ToolCall",
    "ToolDefinition",
    "ToolParameter",
    "ToolRegistry",
    "ToolResult",
    "build_tool_registry",
]
