# -*- coding: utf-8 -*-
"""Read-only query MCP tool"""

from typing import Optional

from ...config.settings import get_settings
from ..base import MCPTool, ToolCategory, ToolParameter, ToolSchema, get_tool_registry


class ExecuteQueryTool(MCPTool):
    """
    Validated, row-bounded read-only query

    Rejected queries never reach the database.
    """

    @property
    def name(self) -> str:
        return "execute_query"

    @property
    def description(self) -> str:
        return (
            "Execute a read-only SQL query. Only SELECT, SHOW, DESCRIBE, EXPLAIN and WITH "
            "statements pass validation; unbounded SELECTs get a LIMIT appended."
        )

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.QUERY

    @property
    def schema(self) -> ToolSchema:
        settings = get_settings()
        return ToolSchema(parameters=[
            ToolParameter(
                name="database",
                type="string",
                description="Registered database alias",
            ),
            ToolParameter(
                name="query",
                type="string",
                description="SQL query; use ? for positional parameters",
            ),
            ToolParameter(
                name="params",
                type="array",
                description="Positional parameter values",
                required=False,
            ),
            ToolParameter(
                name="limit",
                type="integer",
                description=f"Row limit, clamped to 1..{settings.mcp_row_limit}",
                required=False,
                default=settings.mcp_row_limit,
            ),
        ])

    async def _execute(
        self,
        database: str,
        query: str,
        params: Optional[list] = None,
        limit: Optional[int] = None,
    ) -> dict:
        result = await self.inspector.execute_query(database, query, params=params, limit=limit)
        return {
            "database": database,
            "query": query,
            **result,
        }


# Create and register the tool instance
_tool_instance = ExecuteQueryTool()
get_tool_registry().register(_tool_instance)
