# -*- coding: utf-8 -*-
"""Indexes MCP tool"""

from typing import Optional

from ..analysis import analyze_indexes
from ..base import MCPTool, ToolCategory, ToolParameter, ToolSchema, get_tool_registry, table_selection


class GetIndexesTool(MCPTool):
    """Index report for one or more tables"""

    @property
    def name(self) -> str:
        return "get_indexes"

    @property
    def description(self) -> str:
        return (
            "Get index information for a table with statistics, selectivity, redundancy "
            "findings and recommendations. Supports several tables via the tables parameter."
        )

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
            ToolParameter(
                name="table",
                type="string",
                description="Table to report on (single-table mode)",
                required=False,
            ),
            ToolParameter(
                name="tables",
                type="array",
                description="Tables to report on (multi-table mode)",
                required=False,
                items={"type": "string"},
            ),
        ])

    async def _execute(
        self,
        database: str,
        table: Optional[str] = None,
        tables: Optional[list] = None,
    ) -> dict:
        selection = table_selection(table, tables)
        if selection is not None:
            return await self._per_table(selection, lambda t: self._report(database, t))
        return await self._report(database, table)

    async def _report(self, database: str, table: str) -> dict:
        indexes = await self.inspector.get_indexes(database, table)
        report = analyze_indexes(indexes)

        if indexes:
            message = (
                f"Found {len(indexes)} index(es) covering "
                f"{report['statistics']['totalIndexedColumns']} column(s) in table '{table}'"
            )
            issues = []
        else:
            message = f"No indexes found for table '{table}' in database '{database}'"
            issues = ["No indexes found - all queries will require full table scans"]

        return {
            "database": database,
            "table": table,
            **report,
            "potentialIssues": issues,
            "summary": {
                "hasIndexes": bool(indexes),
                "message": message,
            },
        }


# Create and register the tool instance
_tool_instance = GetIndexesTool()
get_tool_registry().register(_tool_instance)
