# -*- coding: utf-8 -*-
"""
MCP Tools Implementation

Every tool subclasses MCPTool and registers itself on import
"""

from .list_databases import ListDatabasesTool
from .list_tables import ListTablesTool
from .inspect_table import InspectTableTool
from .get_foreign_keys import GetForeignKeysTool
from .get_indexes import GetIndexesTool
from .execute_query import ExecuteQueryTool
from .analyze_query import AnalyzeQueryTool
from .information_schema_query import InformationSchemaQueryTool

from ..base import (
    MCPTool,
    ToolCategory,
    ToolParameter,
    ToolSchema,
    ToolResult,
    ToolRegistry,
    get_tool_registry,
)

__all__ = [
    # Tool classes
    "ListDatabasesTool",
    "ListTablesTool",
    "InspectTableTool",
    "GetForeignKeysTool",
    "GetIndexesTool",
    "ExecuteQueryTool",
    "AnalyzeQueryTool",
    "InformationSchemaQueryTool",
    # Base classes
    "MCPTool",
    "ToolCategory",
    "ToolParameter",
    "ToolSchema",
    "ToolResult",
    "ToolRegistry",
    "get_tool_registry",
]
