# -*- coding: utf-8 -*-
"""
Error taxonomy

Validation failures are reported before anything reaches the database.
Connection and query failures propagate unchanged in kind, with credentials
redacted from every surfaced message.
"""

from typing import Any, Optional

from .security.sanitizer import redact


class InspectorError(Exception):
    """Base class for all db-inspector errors"""

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": redact(self.message), "code": self.code}


class ValidationError(InspectorError):
    """Caller-supplied data failed a contract"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class DatabaseError(InspectorError):
    """Environmental failure talking to a database"""

    code = "DATABASE_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class DatabaseConnectionError(DatabaseError):
    """A connection could not be established or maintained"""

    code = "CONNECTION_ERROR"

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause)
        self.host = host
        self.port = port


class QueryExecutionError(DatabaseError):
    """The database rejected a query that passed validation"""

    code = "QUERY_ERROR"

    def __init__(
        self,
        message: str,
        sql: str = "",
        params: Optional[list[Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause)
        self.sql = sql
        self.params = list(params or [])


class PlanParseError(InspectorError):
    """An EXPLAIN result could not be interpreted (degraded, not fatal)"""

    code = "PLAN_PARSE_ERROR"


class ConfigurationError(InspectorError):
    code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key


class ToolError(InspectorError):
    """A tool invocation failed"""

    code = "TOOL_ERROR"

    def __init__(self, message: str, tool_name: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.tool_name = tool_name
        self.cause = cause


def sanitize_error_message(error: BaseException) -> str:
    """Error text with passwords and connection credentials masked"""
    return redact(str(error))


def error_code(error: BaseException) -> str:
    if isinstance(error, InspectorError):
        return error.code
    return "UNKNOWN_ERROR"


def create_error_response(error: BaseException) -> dict:
    """Build the `{error, code}` payload returned to callers"""
    return {"error": sanitize_error_message(error), "code": error_code(error)}


def is_recoverable_error(error: BaseException) -> bool:
    """
    Whether an error looks transient.

    Informational only: nothing inside the inspector retries.
    """
    message = str(error).lower()
    if isinstance(error, DatabaseConnectionError):
        return any(
            marker in message
            for marker in ("timeout", "timed out", "connection refused", "econnrefused", "name or service not known")
        )
    if isinstance(error, QueryExecutionError):
        return "timeout" in message or "timed out" in message
    return False


__all__ = [
    "InspectorError",
    "ValidationError",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryExecutionError",
    "PlanParseError",
    "ConfigurationError",
    "ToolError",
    "sanitize_error_message",
    "error_code",
    "create_error_response",
    "is_recoverable_error",
]
