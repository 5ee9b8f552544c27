# -*- coding: utf-8 -*-
"""List tables MCP tool"""

from ..base import MCPTool, ToolCategory, ToolParameter, ToolSchema, get_tool_registry


class ListTablesTool(MCPTool):
    """Tables of one database alias"""

    @property
    def name(self) -> str:
        return "list_tables"

    @property
    def description(self) -> str:
        return "List all tables in a database with type, engine, estimated row count and comment"

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.SCHEMA

    @property
    def schema(self) -> ToolSchema:
        return ToolSchema(parameters=[
            ToolParameter(
                name="database",
                type="string",
                description="Registered database alias",
            ),
        ])

    async def _execute(self, database: str) -> dict:
        tables = await self.inspector.list_tables(database)
        return {
            "database": database,
            "tables": [table.to_dict() for table in tables],
            "count": len(tables),
        }


# Create and register the tool instance
_tool_instance = ListTablesTool()
get_tool_registry().register(_tool_instance)
