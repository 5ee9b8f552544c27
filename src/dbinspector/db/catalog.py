# -*- coding: utf-8 -*-
"""
Catalog Query Builder

Parameterized catalog queries per dialect and the normalization of their
rows into dialect-independent descriptors.

MySQL reads the flat INFORMATION_SCHEMA filtered by TABLE_SCHEMA = database.
PostgreSQL reads information_schema / pg_catalog filtered by a schema,
`public` unless one is given.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import ValidationError
from ..types import (
    ColumnDescriptor,
    Dialect,
    ForeignKeyDescriptor,
    IndexColumn,
    IndexDescriptor,
    TableDescriptor,
)


DEFAULT_POSTGRES_SCHEMA = "public"

INFORMATION_SCHEMA_TABLES = ("COLUMNS", "TABLES", "ROUTINES")

DEFAULT_INFORMATION_SCHEMA_LIMIT = 100
MAX_INFORMATION_SCHEMA_LIMIT = 1000

_FILTER_KEY = re.compile(r"^[A-Z_]+$")


@dataclass(frozen=True)
class CatalogQuery:
    """SQL with `?` placeholders and its ordered parameters"""
    sql: str
    params: list[Any] = field(default_factory=list)


def _scope(dialect: Dialect, database_name: str, schema: Optional[str]) -> str:
    if dialect is Dialect.POSTGRESQL:
        return schema or DEFAULT_POSTGRES_SCHEMA
    return database_name


# =============================================================================
# Query builders
# =============================================================================

def build_table_list_query(
    dialect: Dialect,
    database_name: str,
    schema: Optional[str] = None,
) -> CatalogQuery:
    if dialect is Dialect.MYSQL:
        sql = """
            SELECT
                TABLE_NAME AS tableName,
                TABLE_TYPE AS tableType,
                ENGINE AS engine,
                TABLE_ROWS AS tableRows,
                TABLE_COMMENT AS tableComment
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = ?
            ORDER BY TABLE_NAME
        """
    elif dialect is Dialect.POSTGRESQL:
        sql = """
            SELECT
                t.table_name AS "tableName",
                t.table_type AS "tableType",
                NULL AS "engine",
                c.reltuples::bigint AS "tableRows",
                obj_description(c.oid, 'pg_class') AS "tableComment"
            FROM information_schema.tables t
            LEFT JOIN pg_catalog.pg_namespace n ON n.nspname = t.table_schema
            LEFT JOIN pg_catalog.pg_class c
                ON c.relname = t.table_name AND c.relnamespace = n.oid
            WHERE t.table_schema = ?
            ORDER BY t.table_name
        """
    else:
        raise ValueError(f"Unsupported dialect: {dialect}")

    return CatalogQuery(sql=sql, params=[_scope(dialect, database_name, schema)])


def build_column_query(
    dialect: Dialect,
    database_name: str,
    table_name: str,
    schema: Optional[str] = None,
) -> CatalogQuery:
    if dialect is Dialect.MYSQL:
        sql = """
            SELECT
                c.COLUMN_NAME AS columnName,
                c.DATA_TYPE AS dataType,
                c.IS_NULLABLE AS isNullable,
                c.COLUMN_DEFAULT AS columnDefault,
                c.EXTRA AS extra,
                c.COLUMN_COMMENT AS columnComment,
                c.CHARACTER_MAXIMUM_LENGTH AS characterMaximumLength,
                c.NUMERIC_PRECISION AS numericPrecision,
                c.NUMERIC_SCALE AS numericScale,
                CASE WHEN k.COLUMN_NAME IS NOT NULL THEN 1 ELSE 0 END AS isPrimaryKey
            FROM INFORMATION_SCHEMA.COLUMNS c
            LEFT JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE k
                ON c.TABLE_SCHEMA = k.TABLE_SCHEMA
                AND c.TABLE_NAME = k.TABLE_NAME
                AND c.COLUMN_NAME = k.COLUMN_NAME
                AND k.CONSTRAINT_NAME = 'PRIMARY'
            WHERE c.TABLE_SCHEMA = ? AND c.TABLE_NAME = ?
            ORDER BY c.ORDINAL_POSITION
        """
    elif dialect is Dialect.POSTGRESQL:
        sql = """
            SELECT
                c.column_name AS "columnName",
                c.data_type AS "dataType",
                c.is_nullable AS "isNullable",
                c.column_default AS "columnDefault",
                NULL AS "extra",
                col_description(
                    (quote_ident(c.table_schema) || '.' || quote_ident(c.table_name))::regclass,
                    c.ordinal_position
                ) AS "columnComment",
                c.character_maximum_length AS "characterMaximumLength",
                c.numeric_precision AS "numericPrecision",
                c.numeric_scale AS "numericScale",
                EXISTS (
                    SELECT 1
                    FROM information_schema.table_constraints tc
                    JOIN information_schema.key_column_usage k
                        ON tc.constraint_name = k.constraint_name
                        AND tc.table_schema = k.table_schema
                        AND tc.table_name = k.table_name
                    WHERE tc.constraint_type = 'PRIMARY KEY'
                        AND tc.table_schema = c.table_schema
                        AND tc.table_name = c.table_name
                        AND k.column_name = c.column_name
                ) AS "isPrimaryKey"
            FROM information_schema.columns c
            WHERE c.table_schema = ? AND c.table_name = ?
            ORDER BY c.ordinal_position
        """
    else:
        raise ValueError(f"Unsupported dialect: {dialect}")

    return CatalogQuery(sql=sql, params=[_scope(dialect, database_name, schema), table_name])


def build_foreign_key_query(
    dialect: Dialect,
    database_name: str,
    table_name: Optional[str] = None,
    schema: Optional[str] = None,
) -> CatalogQuery:
    """Foreign keys of one table, or of the whole schema when no table is given"""
    params: list[Any] = [_scope(dialect, database_name, schema)]

    if dialect is Dialect.MYSQL:
        sql = """
            SELECT
                rc.CONSTRAINT_NAME AS constraintName,
                kcu.TABLE_NAME AS tableName,
                kcu.COLUMN_NAME AS columnName,
                kcu.REFERENCED_TABLE_NAME AS referencedTableName,
                kcu.REFERENCED_COLUMN_NAME AS referencedColumnName,
                rc.UPDATE_RULE AS updateRule,
                rc.DELETE_RULE AS deleteRule
            FROM INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS rc
            JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
                ON rc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
                AND rc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
            WHERE rc.CONSTRAINT_SCHEMA = ?"""
        table_filter = " AND kcu.TABLE_NAME = ?"
        order_by = " ORDER BY kcu.TABLE_NAME, rc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION"
    elif dialect is Dialect.POSTGRESQL:
        sql = """
            SELECT
                tc.constraint_name AS "constraintName",
                kcu.table_name AS "tableName",
                kcu.column_name AS "columnName",
                ccu.table_name AS "referencedTableName",
                ccu.column_name AS "referencedColumnName",
                rc.update_rule AS "updateRule",
                rc.delete_rule AS "deleteRule"
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
            JOIN information_schema.constraint_column_usage ccu
                ON ccu.constraint_name = tc.constraint_name
                AND ccu.constraint_schema = tc.table_schema
            JOIN information_schema.referential_constraints rc
                ON rc.constraint_name = tc.constraint_name
                AND rc.constraint_schema = tc.table_schema
            WHERE tc.constraint_type = 'FOREIGN KEY' AND tc.table_schema = ?"""
        table_filter = " AND tc.table_name = ?"
        order_by = " ORDER BY kcu.table_name, tc.constraint_name, kcu.ordinal_position"
    else:
        raise ValueError(f"Unsupported dialect: {dialect}")

    if table_name:
        sql += table_filter
        params.append(table_name)
    sql += order_by

    return CatalogQuery(sql=sql, params=params)


def build_index_query(
    dialect: Dialect,
    database_name: str,
    table_name: str,
    schema: Optional[str] = None,
) -> CatalogQuery:
    """One row per (index, column), ordered by index name then key position"""
    if dialect is Dialect.MYSQL:
        sql = """
            SELECT
                TABLE_NAME AS tableName,
                INDEX_NAME AS indexName,
                COLUMN_NAME AS columnName,
                NON_UNIQUE AS nonUnique,
                INDEX_TYPE AS indexType,
                CARDINALITY AS cardinality,
                SUB_PART AS subPart,
                NULLABLE AS nullable,
                CASE WHEN INDEX_NAME = 'PRIMARY' THEN 1 ELSE 0 END AS isPrimary
            FROM INFORMATION_SCHEMA.STATISTICS
            WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
        """
    elif dialect is Dialect.POSTGRESQL:
        sql = """
            SELECT
                t.relname AS "tableName",
                i.relname AS "indexName",
                a.attname AS "columnName",
                NOT ix.indisunique AS "nonUnique",
                upper(am.amname) AS "indexType",
                NULL AS "cardinality",
                NULL AS "subPart",
                CASE WHEN a.attnotnull THEN 'NO' ELSE 'YES' END AS "nullable",
                ix.indisprimary AS "isPrimary"
            FROM pg_catalog.pg_class t
            JOIN pg_catalog.pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_catalog.pg_index ix ON ix.indrelid = t.oid
            JOIN pg_catalog.pg_class i ON i.oid = ix.indexrelid
            JOIN pg_catalog.pg_am am ON am.oid = i.relam
            JOIN LATERAL unnest(ix.indkey) WITH ORDINALITY AS k(attnum, ord) ON true
            JOIN pg_catalog.pg_attribute a ON a.attrelid = t.oid AND a.attnum = k.attnum
            WHERE n.nspname = ? AND t.relname = ?
            ORDER BY i.relname, k.ord
        """
    else:
        raise ValueError(f"Unsupported dialect: {dialect}")

    return CatalogQuery(sql=sql, params=[_scope(dialect, database_name, schema), table_name])


def clamp_limit(limit: Optional[int], default: int, maximum: int) -> int:
    """Bound a caller-supplied row limit to [1, maximum]"""
    if limit is None:
        limit = default
    return min(max(int(limit), 1), maximum)


def validate_filter_keys(filters: Optional[dict]) -> None:
    """
    Raises:
        ValidationError: a filter key is not an upper-case catalog column name
    """
    for key in filters or {}:
        if not isinstance(key, str) or not _FILTER_KEY.match(key):
            raise ValidationError(
                f"Invalid filter key: {key}. Only uppercase letters and underscores allowed.",
                field="filters",
            )


def build_information_schema_query(
    dialect: Dialect,
    database_name: str,
    catalog_table: str,
    filters: Optional[dict] = None,
    limit: Optional[int] = None,
    schema: Optional[str] = None,
    max_limit: int = MAX_INFORMATION_SCHEMA_LIMIT,
) -> CatalogQuery:
    """
    `SELECT *` over one of INFORMATION_SCHEMA COLUMNS/TABLES/ROUTINES

    Always scoped to the alias's schema; filters are equality matches on
    upper-case column names.

    Raises:
        ValidationError: unknown catalog table or invalid filter key
    """
    if catalog_table not in INFORMATION_SCHEMA_TABLES:
        raise ValidationError(
            f"Table '{catalog_table}' is not allowed for INFORMATION_SCHEMA queries. "
            f"Allowed: {', '.join(INFORMATION_SCHEMA_TABLES)}",
            field="table",
        )
    validate_filter_keys(filters)

    scope_column = "ROUTINE_SCHEMA" if catalog_table == "ROUTINES" else "TABLE_SCHEMA"
    where = [f"{scope_column} = ?"]
    params: list[Any] = [_scope(dialect, database_name, schema)]
    for key, value in (filters or {}).items():
        where.append(f"{key} = ?")
        params.append(value)

    if dialect is Dialect.MYSQL:
        source = f"INFORMATION_SCHEMA.{catalog_table}"
    elif dialect is Dialect.POSTGRESQL:
        source = f"information_schema.{catalog_table.lower()}"
    else:
        raise ValueError(f"Unsupported dialect: {dialect}")

    bounded = clamp_limit(limit, DEFAULT_INFORMATION_SCHEMA_LIMIT, max_limit)
    sql = f"SELECT * FROM {source} WHERE {' AND '.join(where)} LIMIT {bounded}"
    return CatalogQuery(sql=sql, params=params)


# =============================================================================
# Row normalization
# =============================================================================

def _int_or_none(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "t", "yes")
    return bool(value)


def rows_to_tables(rows: list[dict]) -> list[TableDescriptor]:
    return [
        TableDescriptor(
            table_name=row["tableName"],
            table_type=row.get("tableType"),
            engine=row.get("engine"),
            table_rows=_int_or_none(row.get("tableRows")),
            table_comment=row.get("tableComment") or None,
        )
        for row in rows
    ]


def is_auto_increment(dialect: Dialect, row: dict) -> bool:
    """MySQL flags it in EXTRA; PostgreSQL serial columns default to nextval()"""
    if dialect is Dialect.MYSQL:
        return "auto_increment" in str(row.get("extra") or "").lower()
    if dialect is Dialect.POSTGRESQL:
        return "nextval" in str(row.get("columnDefault") or "").lower()
    raise ValueError(f"Unsupported dialect: {dialect}")


def rows_to_columns(dialect: Dialect, rows: list[dict]) -> list[ColumnDescriptor]:
    return [
        ColumnDescriptor(
            column_name=row["columnName"],
            data_type=row["dataType"],
            is_nullable=str(row.get("isNullable") or "").upper() == "YES",
            is_primary_key=_truthy(row.get("isPrimaryKey")),
            is_auto_increment=is_auto_increment(dialect, row),
            column_default=row.get("columnDefault"),
            column_comment=row.get("columnComment") or None,
            character_maximum_length=_int_or_none(row.get("characterMaximumLength")),
            numeric_precision=_int_or_none(row.get("numericPrecision")),
            numeric_scale=_int_or_none(row.get("numericScale")),
        )
        for row in rows
    ]


def rows_to_foreign_keys(rows: list[dict]) -> list[ForeignKeyDescriptor]:
    return [
        ForeignKeyDescriptor(
            constraint_name=row["constraintName"],
            table_name=row["tableName"],
            column_name=row["columnName"],
            referenced_table_name=row["referencedTableName"],
            referenced_column_name=row["referencedColumnName"],
            update_rule=row.get("updateRule"),
            delete_rule=row.get("deleteRule"),
        )
        for row in rows
    ]


def rows_to_indexes(rows: list[dict]) -> list[IndexDescriptor]:
    """Group per-column rows into indexes, keeping first-seen index order"""
    grouped: dict[str, dict] = {}
    for row in rows:
        name = row["indexName"]
        entry = grouped.get(name)
        if entry is None:
            entry = grouped[name] = {
                "unique": not _truthy(row.get("nonUnique")),
                "index_type": row.get("indexType"),
                "is_primary": _truthy(row.get("isPrimary")) or name == "PRIMARY",
                "columns": [],
            }
        entry["columns"].append(
            IndexColumn(
                name=row["columnName"],
                cardinality=_int_or_none(row.get("cardinality")),
                sub_part=_int_or_none(row.get("subPart")),
                nullable=str(row.get("nullable") or "").upper() == "YES",
            )
        )

    return [
        IndexDescriptor(
            index_name=name,
            unique=entry["unique"],
            columns=tuple(entry["columns"]),
            index_type=entry["index_type"],
            is_primary=entry["is_primary"],
        )
        for name, entry in grouped.items()
    ]


# =============================================================================
# Relationship classification
# =============================================================================

def classify_relationship_type(delete_rule: Optional[str]) -> str:
    rule = (delete_rule or "").upper()
    if rule == "CASCADE":
        return "strong_dependency"
    if rule in ("RESTRICT", "NO ACTION"):
        return "protective"
    if rule == "SET NULL":
        return "optional_reference"
    return "unknown"


def classify_relationship_strength(update_rule: Optional[str], delete_rule: Optional[str]) -> str:
    update = (update_rule or "").upper()
    delete = (delete_rule or "").upper()
    if update == "CASCADE" and delete == "CASCADE":
        return "strong"
    if "RESTRICT" in (update, delete):
        return "medium"
    return "weak"


__all__ = [
    "DEFAULT_POSTGRES_SCHEMA",
    "INFORMATION_SCHEMA_TABLES",
    "DEFAULT_INFORMATION_SCHEMA_LIMIT",
    "MAX_INFORMATION_SCHEMA_LIMIT",
    "CatalogQuery",
    "build_table_list_query",
    "build_column_query",
    "build_foreign_key_query",
    "build_index_query",
    "build_information_schema_query",
    "clamp_limit",
    "validate_filter_keys",
    "rows_to_tables",
    "rows_to_columns",
    "rows_to_foreign_keys",
    "rows_to_indexes",
    "is_auto_increment",
    "classify_relationship_type",
    "classify_relationship_strength",
]
