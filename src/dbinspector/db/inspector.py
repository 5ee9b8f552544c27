# -*- coding: utf-8 -*-
"""
Database inspection operations

Each operation validates its inputs first, then issues its catalog query,
EXPLAIN or user query through a connection acquired for that call alone.
Rejected input never reaches the database.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from ..config.settings import Settings, get_settings
from ..errors import PlanParseError, QueryExecutionError, ValidationError
from ..observability.metrics import record_plan_analysis, record_query_validation
from ..security.sanitizer import sanitize, validate_identifier
from ..sql.limiter import apply_row_limit
from ..sql.plan import PlanAnalyzer, build_explain_sql, extract_raw_plan
from ..sql.validator import QueryValidator, get_query_complexity
from ..types import (
    ColumnDescriptor,
    ConnectionParameters,
    Dialect,
    ForeignKeyDescriptor,
    IdentifierKind,
    IndexDescriptor,
    PlanSummary,
    TableDescriptor,
)
from .catalog import (
    CatalogQuery,
    build_column_query,
    build_foreign_key_query,
    build_index_query,
    build_information_schema_query,
    build_table_list_query,
    clamp_limit,
    rows_to_columns,
    rows_to_foreign_keys,
    rows_to_indexes,
    rows_to_tables,
)
from .connector import DatabaseManager, bind_positional, get_db_manager


@dataclass
class TableInspection:
    """Columns, foreign keys and indexes of one table"""
    table_name: str
    columns: list[ColumnDescriptor]
    foreign_keys: list[ForeignKeyDescriptor] = field(default_factory=list)
    indexes: list[IndexDescriptor] = field(default_factory=list)


def plan_recommendation(summary: PlanSummary) -> str:
    if summary.potential_issues:
        return (
            f"Found {len(summary.potential_issues)} potential performance issues. "
            f"Consider adding indexes or refactoring the query."
        )
    return "No major performance issues detected in the execution plan."


class DatabaseInspector:
    """Read-only schema inspection over registered database aliases"""

    def __init__(
        self,
        manager: DatabaseManager,
        settings: Optional[Settings] = None,
        logger=None,
    ):
        self.manager = manager
        self.settings = settings or get_settings()
        self.logger = logger or structlog.get_logger(__name__)

    # ============================================
    # Input handling
    # ============================================

    def _resolve(self, alias: str) -> tuple[str, ConnectionParameters]:
        """Clean an alias and look up its connection parameters"""
        cleaned = sanitize(alias)
        result = validate_identifier(cleaned, IdentifierKind.DATABASE)
        if not result.is_valid:
            raise ValidationError(f"Invalid database name: {result.error}", field="database")
        return cleaned, self.manager.get(cleaned)

    def _table_name(self, name: str, dialect: Dialect) -> str:
        """Validated table name as stored in the catalog (quotes removed)"""
        cleaned = sanitize(name)
        result = validate_identifier(cleaned, IdentifierKind.TABLE, dialect)
        if not result.is_valid:
            raise ValidationError(f"Invalid table name: {result.error}", field="table")
        if cleaned[0] == dialect.quote_char:
            return cleaned[1:-1]
        return cleaned

    def _schema(self, params: ConnectionParameters) -> Optional[str]:
        if params.dialect is Dialect.POSTGRESQL:
            return self.settings.postgres_default_schema
        return None

    def _validate_query(self, sql: str, dialect: Dialect) -> list[str]:
        """Run the query validator; returns its warnings"""
        result = QueryValidator(dialect, logger=self.logger).validate(sql)
        record_query_validation(result.is_valid)
        if not result.is_valid:
            raise ValidationError(f"Query validation failed: {result.error}", field="query")
        return result.warnings

    async def _run(self, alias: str, query: CatalogQuery) -> list[dict]:
        async with self.manager.connection(alias) as conn:
            result = await self.manager.execute(conn, query.sql, query.params)
        return result.rows

    # ============================================
    # Operations
    # ============================================

    def list_databases(self) -> list[dict]:
        return [info.to_dict() for info in self.manager.list_databases()]

    async def list_tables(self, database: str) -> list[TableDescriptor]:
        alias, params = self._resolve(database)
        query = build_table_list_query(params.dialect, params.database, self._schema(params))
        rows = await self._run(alias, query)
        self.logger.info("tables_listed", database=alias, count=len(rows))
        return rows_to_tables(rows)

    async def get_columns(self, database: str, table: str) -> list[ColumnDescriptor]:
        alias, params = self._resolve(database)
        table_name = self._table_name(table, params.dialect)
        query = build_column_query(params.dialect, params.database, table_name, self._schema(params))
        return rows_to_columns(params.dialect, await self._run(alias, query))

    async def inspect_table(self, database: str, table: str) -> TableInspection:
        """
        Columns, foreign keys and indexes of one table

        Raises:
            ValidationError: invalid alias or table name
            QueryExecutionError: the table has no visible columns
        """
        alias, params = self._resolve(database)
        table_name = self._table_name(table, params.dialect)
        schema = self._schema(params)

        column_query = build_column_query(params.dialect, params.database, table_name, schema)
        columns = rows_to_columns(params.dialect, await self._run(alias, column_query))
        if not columns:
            raise QueryExecutionError(
                f"Table '{table_name}' not found in database '{alias}' or has no accessible columns",
                sql=column_query.sql,
                params=column_query.params,
            )

        # One connection at a time, each released before the next opens
        fk_rows = await self._run(alias, build_foreign_key_query(params.dialect, params.database, table_name, schema))
        index_rows = await self._run(alias, build_index_query(params.dialect, params.database, table_name, schema))

        self.logger.info(
            "table_inspected",
            database=alias,
            table=table_name,
            columns=len(columns),
            foreign_keys=len(fk_rows),
        )
        return TableInspection(
            table_name=table_name,
            columns=columns,
            foreign_keys=rows_to_foreign_keys(fk_rows),
            indexes=rows_to_indexes(index_rows),
        )

    async def get_foreign_keys(self, database: str, table: Optional[str] = None) -> list[ForeignKeyDescriptor]:
        """Foreign keys of one table, or of the whole schema"""
        alias, params = self._resolve(database)
        table_name = self._table_name(table, params.dialect) if table else None
        query = build_foreign_key_query(params.dialect, params.database, table_name, self._schema(params))
        return rows_to_foreign_keys(await self._run(alias, query))

    async def get_indexes(self, database: str, table: str) -> list[IndexDescriptor]:
        alias, params = self._resolve(database)
        table_name = self._table_name(table, params.dialect)
        query = build_index_query(params.dialect, params.database, table_name, self._schema(params))
        return rows_to_indexes(await self._run(alias, query))

    async def execute_query(
        self,
        database: str,
        sql: str,
        params: Optional[list[Any]] = None,
        limit: Optional[int] = None,
    ) -> dict:
        """
        Validate, bound and run a read-only query

        Raises:
            ValidationError: the query was rejected (nothing is sent)
            QueryExecutionError: the database rejected the query
        """
        alias, conn_params = self._resolve(database)
        warnings = self._validate_query(sql, conn_params.dialect)

        max_rows = clamp_limit(limit, self.settings.mcp_row_limit, self.settings.mcp_row_limit)
        bounded = apply_row_limit(sql, max_rows)
        # Placeholder/parameter mismatches are rejected before connecting
        bind_positional(bounded, params)

        async with self.manager.connection(alias) as conn:
            result = await self.manager.execute(conn, bounded, params)

        self.logger.info("query_executed", database=alias, rows=len(result.rows))
        return {
            "rows": result.rows,
            "rowCount": len(result.rows),
            "fields": result.fields,
            "limit": max_rows,
            "limitApplied": bounded != sql,
            "complexity": get_query_complexity(sql),
            "warnings": warnings,
        }

    async def analyze_query(self, database: str, sql: str) -> dict:
        """
        EXPLAIN a validated query and summarize its plan

        A plan that cannot be interpreted is returned raw with `summary`
        set to None and the reason in `planParseError`.
        """
        alias, params = self._resolve(database)
        self._validate_query(sql, params.dialect)

        explain_sql = build_explain_sql(params.dialect, sql)
        async with self.manager.connection(alias) as conn:
            result = await self.manager.execute(conn, explain_sql)
        raw_plan = extract_raw_plan(result.rows)

        analyzer = PlanAnalyzer(params.dialect, max_depth=self.settings.plan_max_depth, logger=self.logger)
        response: dict[str, Any] = {
            "query": sql,
            "dialect": params.dialect.value,
        }
        try:
            summary = analyzer.analyze(raw_plan)
        except PlanParseError as e:
            self.logger.warning("plan_parse_failed", database=alias, error=e.message)
            record_plan_analysis(params.dialect.value, degraded=True)
            response.update(summary=None, planParseError=e.message, executionPlan=raw_plan)
            return response

        record_plan_analysis(params.dialect.value, degraded=False)
        response.update(
            summary={**summary.to_dict(), "recommendation": plan_recommendation(summary)},
            executionPlan=analyzer.decode(raw_plan),
        )
        return response

    async def query_information_schema(
        self,
        database: str,
        table: str,
        filters: Optional[dict] = None,
        limit: Optional[int] = None,
    ) -> dict:
        """
        Rows from INFORMATION_SCHEMA COLUMNS, TABLES or ROUTINES

        Raises:
            ValidationError: unknown catalog table or invalid filter key
        """
        alias, params = self._resolve(database)
        bounded = clamp_limit(
            limit,
            self.settings.information_schema_default_limit,
            self.settings.information_schema_max_limit,
        )
        query = build_information_schema_query(
            params.dialect,
            params.database,
            sanitize(table).upper(),
            filters=filters,
            limit=bounded,
            schema=self._schema(params),
            max_limit=self.settings.information_schema_max_limit,
        )
        async with self.manager.connection(alias) as conn:
            result = await self.manager.execute(conn, query.sql, query.params)
        return {"rows": result.rows, "rowCount": len(result.rows), "fields": result.fields, "limit": bounded}


# Global inspector
_inspector: Optional[DatabaseInspector] = None


def get_inspector() -> DatabaseInspector:
    """Inspector singleton over the global database manager"""
    global _inspector
    if _inspector is None:
        _inspector = DatabaseInspector(get_db_manager())
    return _inspector


def reset_inspector() -> None:
    global _inspector
    _inspector = None


__all__ = [
    "DatabaseInspector",
    "TableInspection",
    "get_inspector",
    "plan_recommendation",
    "reset_inspector",
]
