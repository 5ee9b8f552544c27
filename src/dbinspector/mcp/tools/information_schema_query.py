# -*- coding: utf-8 -*-
"""INFORMATION_SCHEMA query MCP tool"""

from typing import Optional

from ...config.settings import get_settings
from ...db.catalog import INFORMATION_SCHEMA_TABLES
from ..base import MCPTool, ToolCategory, ToolParameter, ToolSchema, get_tool_registry


class InformationSchemaQueryTool(MCPTool):
    """
    Filtered reads of INFORMATION_SCHEMA COLUMNS, TABLES or ROUTINES

    Filter keys must be upper-case column names; values are bound as parameters.
    """

    @property
    def name(self) -> str:
        return "information_schema_query"

    @property
    def description(self) -> str:
        return (
            "Query INFORMATION_SCHEMA COLUMNS, TABLES or ROUTINES with equality filters "
            "(e.g. {\"TABLE_NAME\": \"users\"}), scoped to the database's own schema"
        )

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.SCHEMA

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
                name="table",
                type="string",
                description=f"INFORMATION_SCHEMA table, case-insensitive: {', '.join(INFORMATION_SCHEMA_TABLES)}",
            ),
            ToolParameter(
                name="filters",
                type="object",
                description="Column/value equality filters; keys must match [A-Z_]+",
                required=False,
            ),
            ToolParameter(
                name="limit",
                type="integer",
                description=f"Row limit, clamped to 1..{settings.information_schema_max_limit}",
                required=False,
                default=settings.information_schema_default_limit,
            ),
        ])

    async def _execute(
        self,
        database: str,
        table: str,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
    ) -> dict:
        result = await self.inspector.query_information_schema(database, table, filters=filters, limit=limit)
        return {
            "database": database,
            "table": table,
            **result,
        }


# Create and register the tool instance
_tool_instance = InformationSchemaQueryTool()
get_tool_registry().register(_tool_instance)
