# -*- coding: utf-8 -*-
"""
MCP Tools Protocol Layer

1. Tool base class (MCPTool)
2. JSON Schema input validation
3. Execution metrics
4. Tool registration and discovery
"""

from .base import (
    MCPTool,
    ToolCategory,
    ToolParameter,
    ToolSchema,
    ToolResult,
    ToolRegistry,
    get_tool_registry,
    MCP_TOOL_CALLS,
    MCP_TOOL_LATENCY,
)

from .tools import (
    ListDatabasesTool,
    ListTablesTool,
    InspectTableTool,
    GetForeignKeysTool,
    GetIndexesTool,
    ExecuteQueryTool,
    AnalyzeQueryTool,
    InformationSchemaQueryTool,
)

__all__ = [
    "MCPTool",
    "ToolCategory",
    "ToolParameter",
    "ToolSchema",
    "ToolResult",
    "ToolRegistry",
    "get_tool_registry",
    "MCP_TOOL_CALLS",
    "MCP_TOOL_LATENCY",
    "ListDatabasesTool",
    "ListTablesTool",
    "InspectTableTool",
    "GetForeignKeysTool",
    "GetIndexesTool",
    "ExecuteQueryTool",
    "AnalyzeQueryTool",
    "InformationSchemaQueryTool",
]
