# -*- coding: utf-8 -*-
"""Foreign keys MCP tool"""

from typing import Optional

from ..analysis import (
    analyze_relationships,
    describe_foreign_key,
    foreign_key_issues,
    foreign_key_statistics,
    integrity_summary,
)
from ..base import MCPTool, ToolCategory, ToolParameter, ToolSchema, get_tool_registry


class GetForeignKeysTool(MCPTool):
    """Foreign key relationships of one table or a whole database"""

    @property
    def name(self) -> str:
        return "get_foreign_keys"

    @property
    def description(self) -> str:
        return (
            "Get foreign key relationships for a table, or for the whole database when no "
            "table is given, with relationship classification and integrity analysis"
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
                description="Table to scope to; omit for the whole database",
                required=False,
            ),
        ])

    async def _execute(self, database: str, table: Optional[str] = None) -> dict:
        foreign_keys = await self.inspector.get_foreign_keys(database, table)
        relationships = analyze_relationships(foreign_keys)
        scope = f"table: {table}" if table else "entire database"

        if foreign_keys:
            message = (
                f"Found {len(foreign_keys)} foreign key relationship(s) in {scope} "
                f"involving {relationships['totalRelationships']} table connection(s)"
            )
        else:
            message = f"No foreign key relationships found in {scope} of database '{database}'"

        return {
            "database": database,
            "table": table,
            "scope": "table" if table else "database",
            "foreignKeys": [describe_foreign_key(fk) for fk in foreign_keys],
            "relationships": relationships["relationships"],
            "tableConnections": relationships["tableConnections"],
            "statistics": {
                **foreign_key_statistics(foreign_keys),
                "compositeRelationships": relationships["compositeRelationships"],
            },
            "integrityRules": integrity_summary(foreign_keys),
            "potentialIssues": foreign_key_issues(foreign_keys),
            "summary": {
                "hasRelationships": bool(foreign_keys),
                "message": message,
            },
        }


# Create and register the tool instance
_tool_instance = GetForeignKeysTool()
get_tool_registry().register(_tool_instance)
