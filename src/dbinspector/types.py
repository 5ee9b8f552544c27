# -*- coding: utf-8 -*-
"""
Shared value types

Dialect tag, connection parameters, validation results and the
dialect-normalized views built from catalog rows.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class Dialect(str, Enum):
    """Supported SQL dialects"""
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"

    @property
    def default_port(self) -> int:
        if self is Dialect.MYSQL:
            return 3306
        return 5432

    @property
    def quote_char(self) -> str:
        """Identifier quoting character"""
        if self is Dialect.MYSQL:
            return "`"
        return '"'


class TlsMode(str, Enum):
    """TLS setting carried by a connection URL"""
    DEFAULT = "default"
    DISABLED = "disabled"
    REQUIRED = "required"
    NO_VERIFY = "no-verify"


class IdentifierKind(str, Enum):
    DATABASE = "database"
    TABLE = "table"
    COLUMN = "column"


@dataclass(frozen=True)
class ConnectionParameters:
    """Everything needed to open a connection; derived once from a URL"""
    dialect: Dialect
    host: str
    port: int
    user: str
    password: str = field(repr=False)
    database: str
    tls: TlsMode = TlsMode.DEFAULT

    def describe(self) -> str:
        """Credential-free description for logs"""
        return f"{self.dialect.value}://{self.host}:{self.port}/{self.database}"


@dataclass
class ValidationResult:
    """Outcome of a validation; invalidity is a value, not an exception"""
    is_valid: bool
    error: Optional[str] = None
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.is_valid and not self.error:
            raise ValueError("an invalid ValidationResult must carry an error")

    @classmethod
    def ok(cls, warnings: Optional[list[str]] = None) -> "ValidationResult":
        return cls(is_valid=True, warnings=list(warnings or []))

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(is_valid=False, error=error)

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"isValid": self.is_valid, "warnings": list(self.warnings)}
        if self.error:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class DatabaseInfo:
    """Public view of a registered alias"""
    name: str
    dialect: Dialect
    host: str
    port: int
    database: str
    tls: TlsMode
    last_used: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.dialect.value,
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "tls": self.tls.value,
            "lastUsed": self.last_used.isoformat() if self.last_used else None,
        }


@dataclass(frozen=True)
class TableDescriptor:
    table_name: str
    table_type: str
    engine: Optional[str] = None
    table_rows: Optional[int] = None
    table_comment: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "tableName": self.table_name,
            "tableType": self.table_type,
            "engine": self.engine,
            "tableRows": self.table_rows,
            "tableComment": self.table_comment,
        }


@dataclass(frozen=True)
class ColumnDescriptor:
    column_name: str
    data_type: str
    is_nullable: bool
    is_primary_key: bool
    is_auto_increment: bool
    column_default: Any = None
    column_comment: Optional[str] = None
    character_maximum_length: Optional[int] = None
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "columnName": self.column_name,
            "dataType": self.data_type,
            "isNullable": self.is_nullable,
            "isPrimaryKey": self.is_primary_key,
            "isAutoIncrement": self.is_auto_increment,
            "columnDefault": self.column_default,
            "columnComment": self.column_comment,
            "characterMaximumLength": self.character_maximum_length,
            "numericPrecision": self.numeric_precision,
            "numericScale": self.numeric_scale,
        }


@dataclass(frozen=True)
class ForeignKeyDescriptor:
    constraint_name: str
    table_name: str
    column_name: str
    referenced_table_name: str
    referenced_column_name: str
    update_rule: Optional[str] = None
    delete_rule: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "constraintName": self.constraint_name,
            "sourceTable": self.table_name,
            "sourceColumn": self.column_name,
            "targetTable": self.referenced_table_name,
            "targetColumn": self.referenced_column_name,
            "updateRule": self.update_rule,
            "deleteRule": self.delete_rule,
        }


@dataclass(frozen=True)
class IndexColumn:
    name: str
    cardinality: Optional[int] = None
    sub_part: Optional[int] = None
    nullable: bool = False


@dataclass(frozen=True)
class IndexDescriptor:
    """One index with its columns in key order"""
    index_name: str
    unique: bool
    columns: tuple[IndexColumn, ...]
    index_type: Optional[str] = None
    is_primary: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.index_name,
            "type": self.index_type,
            "unique": self.unique,
            "isPrimary": self.is_primary,
            "columns": [asdict(col) for col in self.columns],
        }


@dataclass
class PlanSummary:
    """Dialect-independent reduction of an execution plan"""
    cost: Optional[float] = None
    operations: list[str] = field(default_factory=list)
    potential_issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "cost": self.cost,
            "operations": list(self.operations),
            "potentialIssues": list(self.potential_issues),
        }


@dataclass
class QueryResult:
    """Rows and field names returned by one statement"""
    rows: list[dict]
    fields: list[str] = field(default_factory=list)


__all__ = [
    "Dialect",
    "TlsMode",
    "IdentifierKind",
    "ConnectionParameters",
    "ValidationResult",
    "DatabaseInfo",
    "TableDescriptor",
    "ColumnDescriptor",
    "ForeignKeyDescriptor",
    "IndexColumn",
    "IndexDescriptor",
    "PlanSummary",
    "QueryResult",
]
