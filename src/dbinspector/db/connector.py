# -*- coding: utf-8 -*-
"""
Database connections

Alias registry plus the per-call connection discipline: every operation
opens its own connection (NullPool, no pooling) and releases it on every
exit path.
"""

import re
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Callable, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from ..config.settings import Settings, get_settings
from ..errors import (
    DatabaseConnectionError,
    DatabaseError,
    QueryExecutionError,
    ValidationError,
    sanitize_error_message,
)
from ..observability.metrics import record_db_query_rows, track_connection, track_db_query
from ..types import ConnectionParameters, DatabaseInfo, Dialect, QueryResult, TlsMode
from .url import extract_database_name, parse_connection_url


_DRIVERS = {
    Dialect.MYSQL: "mysql+aiomysql",
    Dialect.POSTGRESQL: "postgresql+asyncpg",
}

# `:name` sequences that text() would otherwise take for bind parameters
_COLON_BIND = re.compile(r"(?<![:\w\\]):(?=\w)")


# ============================================
# Parameter binding
# ============================================

def bind_positional(sql: str, params: Optional[list[Any]] = None) -> tuple[str, dict[str, Any]]:
    """
    Rewrite `?` placeholders as named binds for `sqlalchemy.text`

    Placeholders inside quoted literals or identifiers are left alone. Without
    parameters the SQL is not scanned for `?` at all.

    Returns:
        (sql, {"p1": ..., "p2": ...})

    Raises:
        ValidationError: placeholder count does not match the parameters
    """
    escaped = _COLON_BIND.sub(r"\\:", sql)
    params = list(params or [])
    if not params:
        return escaped, {}

    out: list[str] = []
    quote: Optional[str] = None
    count = 0
    for char in escaped:
        if quote:
            if char == quote:
                quote = None
            out.append(char)
        elif char in ("'", '"', "`"):
            quote = char
            out.append(char)
        elif char == "?":
            count += 1
            out.append(f":p{count}")
        else:
            out.append(char)

    if count != len(params):
        raise ValidationError(
            f"Query has {count} placeholder(s) but {len(params)} parameter(s) were given",
            field="params",
        )
    return "".join(out), {f"p{i}": value for i, value in enumerate(params, start=1)}


# ============================================
# Engine construction
# ============================================

def build_engine_url(params: ConnectionParameters) -> URL:
    return URL.create(
        _DRIVERS[params.dialect],
        username=params.user,
        password=params.password,
        host=params.host,
        port=params.port,
        database=params.database or None,
    )


def build_connect_args(params: ConnectionParameters, timeout: int) -> dict[str, Any]:
    """Driver keyword arguments for timeout and TLS"""
    if params.dialect is Dialect.MYSQL:
        args: dict[str, Any] = {"connect_timeout": timeout}
        if params.tls is TlsMode.REQUIRED:
            args["ssl"] = ssl.create_default_context()
        return args

    args = {"timeout": timeout}
    if params.tls is TlsMode.REQUIRED:
        args["ssl"] = "require"
    elif params.tls is TlsMode.DISABLED:
        args["ssl"] = False
    elif params.tls is TlsMode.NO_VERIFY:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        args["ssl"] = context
    return args


def create_engine_for(params: ConnectionParameters, timeout: int) -> AsyncEngine:
    """Unpooled async engine: one physical connection per acquisition"""
    return create_async_engine(
        build_engine_url(params),
        poolclass=NullPool,
        connect_args=build_connect_args(params, timeout),
    )


EngineFactory = Callable[[ConnectionParameters, int], Any]


# ============================================
# Connections and registry
# ============================================

@dataclass
class DatabaseConnection:
    """A live connection scoped to one operation"""
    alias: str
    parameters: ConnectionParameters
    raw: Any

    @property
    def dialect(self) -> Dialect:
        return self.parameters.dialect


class DatabaseManager:
    """Alias -> connection parameters registry and connection provider"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine_factory: Optional[EngineFactory] = None,
        logger=None,
    ):
        self.settings = settings or get_settings()
        self._engine_factory = engine_factory or create_engine_for
        self.logger = logger or structlog.get_logger(__name__)
        self._databases: dict[str, ConnectionParameters] = {}
        self._last_used: dict[str, datetime] = {}

    async def add_database(self, url: str, name: Optional[str] = None) -> str:
        """
        Register a connection URL under an alias

        Args:
            url: mysql:// or postgresql:// URL with host, user and password
            name: alias; defaults to the URL's database name

        Returns:
            The alias

        Raises:
            ValidationError: invalid URL or alias already registered
            DatabaseConnectionError: connectivity check failed
        """
        params = parse_connection_url(url)
        alias = (name or extract_database_name(url)).strip()
        if not alias:
            raise ValidationError("Database alias cannot be empty", field="name")
        self._ensure_unused(alias)

        if self.settings.verify_on_register:
            await self._verify(alias, params)
            # Registration may have raced during the connectivity check
            self._ensure_unused(alias)

        self._databases[alias] = params
        self._last_used[alias] = datetime.now(timezone.utc)
        self.logger.info("database_added", database=alias, target=params.describe())
        return alias

    def _ensure_unused(self, alias: str) -> None:
        if alias in self._databases:
            raise ValidationError(
                f"Database alias already registered: {alias}. Remove it first.",
                field="name",
            )

    async def _verify(self, alias: str, params: ConnectionParameters) -> None:
        async with self._open(alias, params) as conn:
            await self.execute(conn, "SELECT 1")

    async def remove_database(self, name: str) -> None:
        if name not in self._databases:
            raise DatabaseError(f"Database not found: {name}")
        del self._databases[name]
        self._last_used.pop(name, None)
        self.logger.info("database_removed", database=name)

    def get(self, name: str) -> ConnectionParameters:
        """
        Raises:
            DatabaseError: unknown alias
        """
        try:
            return self._databases[name]
        except KeyError:
            raise DatabaseError(f"Database not found: {name}") from None

    def list_databases(self) -> list[DatabaseInfo]:
        return [
            DatabaseInfo(
                name=name,
                dialect=params.dialect,
                host=params.host,
                port=params.port,
                database=params.database,
                tls=params.tls,
                last_used=self._last_used.get(name),
            )
            for name, params in self._databases.items()
        ]

    def __contains__(self, name: str) -> bool:
        return name in self._databases

    def __len__(self) -> int:
        return len(self._databases)

    @asynccontextmanager
    async def connection(self, name: str) -> AsyncGenerator[DatabaseConnection, None]:
        """
        Acquire a fresh connection for one operation

        The connection is released when the block exits, including on error.

        Raises:
            DatabaseError: unknown alias
            DatabaseConnectionError: the connection could not be opened
        """
        params = self.get(name)
        async with self._open(name, params) as conn:
            self._last_used[name] = datetime.now(timezone.utc)
            yield conn

    @asynccontextmanager
    async def _open(self, alias: str, params: ConnectionParameters) -> AsyncGenerator[DatabaseConnection, None]:
        engine = self._engine_factory(params, self.settings.connect_timeout_seconds)
        raw = None
        try:
            try:
                raw = await engine.connect()
            except Exception as e:
                self.logger.error(
                    "connection_failed",
                    database=alias,
                    target=params.describe(),
                    error=sanitize_error_message(e),
                )
                raise DatabaseConnectionError(
                    f"Cannot connect to database '{alias}': {sanitize_error_message(e)}",
                    host=params.host,
                    port=params.port,
                    cause=e,
                ) from e

            self.logger.debug("connection_acquired", database=alias)
            with track_connection(params.dialect.value):
                yield DatabaseConnection(alias=alias, parameters=params, raw=raw)
        finally:
            await self._release(alias, raw, engine)

    async def _release(self, alias: str, raw: Any, engine: Any) -> None:
        """Close the connection and its engine; failures are logged, never raised"""
        try:
            if raw is not None:
                await raw.close()
        except Exception as e:
            self.logger.warning("connection_release_failed", database=alias, error=sanitize_error_message(e))
        try:
            await engine.dispose()
        except Exception as e:
            self.logger.warning("engine_dispose_failed", database=alias, error=sanitize_error_message(e))
        self.logger.debug("connection_released", database=alias)

    async def execute(
        self,
        conn: DatabaseConnection,
        sql: str,
        params: Optional[list[Any]] = None,
    ) -> QueryResult:
        """
        Run one statement with positional `?` parameters

        Raises:
            ValidationError: placeholder/parameter count mismatch
            QueryExecutionError: the database rejected the statement
        """
        statement, binds = bind_positional(sql, params)
        db_type = conn.dialect.value

        try:
            with track_db_query(db_type):
                result = await conn.raw.execute(text(statement), binds)
                fields = list(result.keys())
                rows = [dict(zip(fields, row)) for row in result.fetchall()]
        except Exception as e:
            message = sanitize_error_message(e)
            self.logger.warning("query_failed", database=conn.alias, error=message)
            raise QueryExecutionError(
                f"Query failed: {message}",
                sql=sql,
                params=params,
                cause=e,
            ) from e

        record_db_query_rows(db_type, len(rows))
        return QueryResult(rows=rows, fields=fields)

    async def close_all(self) -> None:
        """Forget every alias; connections are never held between calls"""
        self._databases.clear()
        self._last_used.clear()
        self.logger.info("database_registry_cleared")


# Global database manager
_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Database manager singleton"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def reset_db_manager() -> None:
    """Drop the singleton (used after configuration changes and in tests)"""
    global _db_manager
    _db_manager = None


__all__ = [
    "DatabaseConnection",
    "DatabaseManager",
    "bind_positional",
    "build_engine_url",
    "build_connect_args",
    "create_engine_for",
    "get_db_manager",
    "reset_db_manager",
]
