# -*- coding: utf-8 -*-
"""
Query plan analysis MCP tool

Runs EXPLAIN in JSON form and summarizes the plan:
- MySQL: EXPLAIN FORMAT=JSON
- PostgreSQL: EXPLAIN (FORMAT JSON)
"""

from ..base import MCPTool, ToolCategory, ToolParameter, ToolSchema, get_tool_registry


class AnalyzeQueryTool(MCPTool):
    """Execution plan summary with cost, operations and potential issues"""

    @property
    def name(self) -> str:
        return "analyze_query"

    @property
    def description(self) -> str:
        return "Analyze a SQL query's execution plan and report cost, operations and full table scans"

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.ANALYSIS

    @property
    def schema(self) -> ToolSchema:
        return ToolSchema(parameters=[
            ToolParameter(
                name="database",
                type="string",
                description="Registered database alias",
            ),
            ToolParameter(
                name="query",
                type="string",
                description="Read-only SQL query to analyze",
            ),
        ])

    async def _execute(self, database: str, query: str) -> dict:
        analysis = await self.inspector.analyze_query(database, query)
        return {
            "database": database,
            **analysis,
        }


# Create and register the tool instance
_tool_instance = AnalyzeQueryTool()
get_tool_registry().register(_tool_instance)
