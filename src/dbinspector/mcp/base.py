# -*- coding: utf-8 -*-
"""
MCP Tool base class

Base class for the Model Context Protocol tools:
1. Uniform tool interface
2. JSON Schema input validation
3. Execution metrics
4. Error handling with redacted messages
5. Tool registration and discovery
6. Timeout (no retries: failures go straight back to the caller)
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import structlog
from prometheus_client import Counter, Histogram

from ..config.settings import get_settings
from ..errors import InspectorError, ToolError, ValidationError, create_error_response
from ..observability.metrics import record_error


logger = structlog.get_logger(__name__)


# ============================================
# Prometheus metrics
# ============================================

MCP_TOOL_CALLS = Counter(
    "inspector_mcp_tool_calls_total",
    "Total MCP tool calls",
    labelnames=["tool_name", "status"],
)

MCP_TOOL_LATENCY = Histogram(
    "inspector_mcp_tool_latency_seconds",
    "MCP tool execution latency",
    labelnames=["tool_name"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


# ============================================
# Data structures
# ============================================

class ToolCategory(Enum):
    """Tool categories"""
    DATABASE = "database"      # alias registry
    SCHEMA = "schema"          # catalog inspection
    QUERY = "query"            # query execution
    ANALYSIS = "analysis"      # plan analysis


@dataclass
class ToolParameter:
    """Tool parameter definition"""
    name: str
    type: str  # string, integer, number, boolean, array, object
    description: str
    required: bool = True
    default: Any = None
    enum: Optional[list] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    items: Optional[dict] = None


@dataclass
class ToolSchema:
    """Tool input schema (JSON Schema)"""
    parameters: list[ToolParameter] = field(default_factory=list)

    def to_json_schema(self) -> dict:
        properties = {}
        required = []

        for param in self.parameters:
            prop = {
                "type": param.type,
                "description": param.description,
            }
            if param.enum:
                prop["enum"] = param.enum
            if param.minimum is not None:
                prop["minimum"] = param.minimum
            if param.maximum is not None:
                prop["maximum"] = param.maximum
            if param.default is not None:
                prop["default"] = param.default
            if param.items is not None:
                prop["items"] = param.items

            properties[param.name] = prop

            if param.required:
                required.append(param.name)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }


@dataclass
class ToolResult:
    """Tool execution result"""
    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[str] = None
    execution_time_ms: float = 0.0
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        result = {
            "success": self.success,
            "execution_time_ms": self.execution_time_ms,
        }
        if self.success:
            result["data"] = self.data
        else:
            result["error"] = self.error
            result["code"] = self.code
        if self.metadata:
            result["metadata"] = self.metadata
        return result


# ============================================
# MCP Tool base class
# ============================================

class MCPTool(ABC):
    """
    MCP Tool base class

    Subclasses implement:
    - name: unique tool name
    - description
    - category
    - schema: input parameters
    - _execute: the work itself

    Tools take an optional DatabaseInspector; without one they use the
    process-wide inspector.
    """

    def __init__(self, inspector=None):
        self._inspector = inspector
        self._call_count = 0
        self._total_time = 0.0
        self._last_called: Optional[datetime] = None

    @property
    def inspector(self):
        if self._inspector is None:
            from ..db.inspector import get_inspector
            return get_inspector()
        return self._inspector

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @property
    def category(self) -> ToolCategory:
        return ToolCategory.SCHEMA

    @property
    def schema(self) -> ToolSchema:
        return ToolSchema()

    @abstractmethod
    async def _execute(self, **kwargs) -> Any:
        """
        Tool logic (implemented by subclasses)

        Args:
            **kwargs: validated tool parameters

        Returns:
            JSON-serializable result data
        """
        pass

    async def execute(self, **kwargs) -> ToolResult:
        """
        Run the tool with parameter validation, timeout, metrics and error handling

        Args:
            **kwargs: tool parameters

        Returns:
            ToolResult
        """
        settings = get_settings()
        timeout_seconds = settings.mcp_timeout_seconds

        start_time = time.perf_counter()
        status = "success"

        try:
            validation_error = self._validate_params(kwargs)
            if validation_error:
                status = "validation_error"
                return ToolResult(
                    success=False,
                    error=validation_error,
                    code="VALIDATION_ERROR",
                    metadata={"tool_name": self.name},
                )

            result = await asyncio.wait_for(
                self._execute(**kwargs),
                timeout=timeout_seconds,
            )

            execution_time = (time.perf_counter() - start_time) * 1000
            self._call_count += 1
            self._total_time += execution_time
            self._last_called = datetime.now(timezone.utc)

            return ToolResult(
                success=True,
                data=result,
                execution_time_ms=execution_time,
                metadata={
                    "tool_name": self.name,
                    "call_count": self._call_count,
                },
            )

        except asyncio.TimeoutError:
            status = "timeout"
            record_error("tool_timeout")
            logger.warning("tool_timeout", tool=self.name, timeout_seconds=timeout_seconds)
            return ToolResult(
                success=False,
                error=f"Tool execution timed out after {timeout_seconds}s",
                code="TIMEOUT",
                execution_time_ms=(time.perf_counter() - start_time) * 1000,
                metadata={"tool_name": self.name},
            )

        except Exception as e:
            status = "error"
            error = e if isinstance(e, InspectorError) else ToolError(
                f"Tool '{self.name}' failed: {e}", tool_name=self.name, cause=e,
            )
            response = create_error_response(error)
            record_error(response["code"].lower())
            logger.warning("tool_failed", tool=self.name, code=response["code"], error=response["error"])
            return ToolResult(
                success=False,
                error=response["error"],
                code=response["code"],
                execution_time_ms=(time.perf_counter() - start_time) * 1000,
                metadata={"tool_name": self.name},
            )

        finally:
            MCP_TOOL_CALLS.labels(tool_name=self.name, status=status).inc()
            MCP_TOOL_LATENCY.labels(tool_name=self.name).observe(
                (time.perf_counter() - start_time)
            )

    async def _per_table(self, tables: list[str], handler: Callable[[str], Awaitable[Any]]) -> dict:
        """
        Run `handler` for each table name

        Inspector errors are reported under the table's key instead of failing
        the whole call.
        """
        results: dict[str, Any] = {}
        for table in tables:
            try:
                results[table] = await handler(table)
            except InspectorError as e:
                results[table] = create_error_response(e)
        return results

    def _validate_params(self, params: dict) -> Optional[str]:
        """Check parameters against the schema"""
        schema = self.schema
        known = {param.name for param in schema.parameters}

        unknown = sorted(set(params) - known)
        if unknown:
            return f"Unknown parameter(s): {', '.join(unknown)}"

        for param in schema.parameters:
            if param.required and params.get(param.name) is None:
                if param.default is None:
                    return f"Missing required parameter: {param.name}"

            if param.name in params:
                value = params[param.name]
                if not self._check_type(value, param.type):
                    return f"Invalid type for {param.name}: expected {param.type}"

                if param.minimum is not None and isinstance(value, (int, float)):
                    if value < param.minimum:
                        return f"{param.name} must be >= {param.minimum}"
                if param.maximum is not None and isinstance(value, (int, float)):
                    if value > param.maximum:
                        return f"{param.name} must be <= {param.maximum}"

                if param.enum and value not in param.enum:
                    return f"{param.name} must be one of {param.enum}"

        return None

    def _check_type(self, value: Any, expected_type: str) -> bool:
        type_map = {
            "string": str,
            "integer": int,
            "number": (int, float),
            "boolean": bool,
            "array": list,
            "object": dict,
        }
        expected = type_map.get(expected_type)
        if expected is None:
            return True
        if value is None:
            return True
        # bool is an int subclass but never a valid integer/number argument
        if expected_type in ("integer", "number") and isinstance(value, bool):
            return False
        return isinstance(value, expected)

    def to_mcp_definition(self) -> dict:
        """MCP tool definition"""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.schema.to_json_schema(),
        }

    def get_stats(self) -> dict:
        return {
            "name": self.name,
            "call_count": self._call_count,
            "total_time_ms": self._total_time,
            "avg_time_ms": self._total_time / self._call_count if self._call_count > 0 else 0,
            "last_called": self._last_called.isoformat() if self._last_called else None,
        }


def table_selection(table: Optional[str], tables: Optional[list]) -> Optional[list[str]]:
    """
    Resolve the single-table / multi-table arguments

    Returns:
        None for single-table mode, the table list for multi-table mode

    Raises:
        ValidationError: both or neither were given
    """
    if table and tables:
        raise ValidationError("Provide either 'table' or 'tables', not both", field="tables")
    if tables:
        return list(tables)
    if not table:
        raise ValidationError("Either 'table' or non-empty 'tables' must be provided", field="table")
    return None


# ============================================
# Tool registry
# ============================================

class ToolRegistry:
    """
    MCP tool registry

    Holds every registered tool by name
    """

    _instance: Optional["ToolRegistry"] = None
    _tools: dict[str, MCPTool]

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._tools = {}
        return cls._instance

    def register(self, tool: MCPTool):
        self._tools[tool.name] = tool

    def unregister(self, name: str):
        if name in self._tools:
            del self._tools[name]

    def get(self, name: str) -> Optional[MCPTool]:
        return self._tools.get(name)

    def list_tools(self) -> list[MCPTool]:
        return list(self._tools.values())

    def list_by_category(self, category: ToolCategory) -> list[MCPTool]:
        return [t for t in self._tools.values() if t.category == category]

    def get_mcp_definitions(self) -> list[dict]:
        return [t.to_mcp_definition() for t in self._tools.values()]

    def get_all_stats(self) -> list[dict]:
        return [t.get_stats() for t in self._tools.values()]


def get_tool_registry() -> ToolRegistry:
    """Tool registry singleton"""
    return ToolRegistry()


__all__ = [
    "MCPTool",
    "ToolCategory",
    "ToolParameter",
    "ToolSchema",
    "ToolResult",
    "ToolRegistry",
    "get_tool_registry",
    "table_selection",
    "MCP_TOOL_CALLS",
    "MCP_TOOL_LATENCY",
]
