# -*- coding: utf-8 -*-
"""List databases MCP tool"""

from ..base import MCPTool, ToolCategory, get_tool_registry


class ListDatabasesTool(MCPTool):
    """Registered database aliases"""

    @property
    def name(self) -> str:
        return "list_databases"

    @property
    def description(self) -> str:
        return "List all registered database aliases with their dialect, host and database name"

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.DATABASE

    async def _execute(self) -> dict:
        databases = self.inspector.list_databases()
        return {
            "databases": databases,
            "count": len(databases),
        }


# Create and register the tool instance
_tool_instance = ListDatabasesTool()
get_tool_registry().register(_tool_instance)
