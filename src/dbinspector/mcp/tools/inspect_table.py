# -*- coding: utf-8 -*-
"""Inspect table MCP tool"""

from typing import Optional

from ..analysis import (
    analyze_indexes,
    column_summary,
    describe_column,
    describe_foreign_key,
    group_columns_by_type,
)
from ..base import MCPTool, ToolCategory, ToolParameter, ToolSchema, get_tool_registry, table_selection


class InspectTableTool(MCPTool):
    """
    Complete table schema: columns, foreign keys and indexes

    Single-table mode takes `table`; multi-table mode takes `tables` and
    returns a mapping of table name to report (or error).
    """

    @property
    def name(self) -> str:
        return "inspect_table"

    @property
    def description(self) -> str:
        return (
            "Get complete table schema including columns, types, constraints and indexes. "
            "Supports multi-table inspection via the tables parameter."
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
                description="Table to inspect (single-table mode)",
                required=False,
            ),
            ToolParameter(
                name="tables",
                type="array",
                description="Tables to inspect (multi-table mode)",
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
            return await self._per_table(selection, lambda t: self._inspect(database, t))
        return await self._inspect(database, table)

    async def _inspect(self, database: str, table: str) -> dict:
        inspection = await self.inspector.inspect_table(database, table)
        columns = inspection.columns
        index_report = analyze_indexes(inspection.indexes)

        return {
            "database": database,
            "table": inspection.table_name,
            "columns": [describe_column(col) for col in columns],
            "constraints": {
                "primaryKey": [col.column_name for col in columns if col.is_primary_key],
                "foreignKeys": [describe_foreign_key(fk) for fk in inspection.foreign_keys],
                "unique": [
                    idx.index_name for idx in inspection.indexes if idx.unique and not idx.is_primary
                ],
            },
            "indexes": index_report["indexes"],
            "columnSummary": column_summary(columns),
            "columnsByType": group_columns_by_type(columns),
            "recommendations": index_report["recommendations"],
        }


# Create and register the tool instance
_tool_instance = InspectTableTool()
get_tool_registry().register(_tool_instance)
