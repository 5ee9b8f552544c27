# -*- coding: utf-8 -*-
"""
Execution plan analysis

Reduces a dialect-specific EXPLAIN result to a PlanSummary:
- MySQL EXPLAIN FORMAT=JSON: nested object under `query_block`; any `table`
  key anywhere in the tree is an access step
- PostgreSQL EXPLAIN (FORMAT JSON): `Plan` root node with recursive `Plans`
"""

import json
from typing import Any, Callable, Iterable, Optional

import structlog

from ..errors import PlanParseError
from ..types import Dialect, PlanSummary


DEFAULT_MAX_DEPTH = 100

Visitor = Callable[[dict, int], None]
Children = Callable[[dict], Iterable[Any]]


def build_explain_sql(dialect: Dialect, query: str) -> str:
    """EXPLAIN statement requesting JSON output"""
    query = query.strip().rstrip(";").rstrip()
    if dialect is Dialect.MYSQL:
        return f"EXPLAIN FORMAT=JSON {query}"
    if dialect is Dialect.POSTGRESQL:
        return f"EXPLAIN (FORMAT JSON) {query}"
    raise ValueError(f"Unsupported dialect: {dialect}")


def extract_raw_plan(rows: list[dict]) -> Any:
    """
    Pull the plan value out of EXPLAIN result rows

    MySQL returns one row keyed `EXPLAIN`, PostgreSQL one row keyed `QUERY PLAN`.
    Any other shape is returned as-is.
    """
    if not rows:
        return None
    first = rows[0]
    if isinstance(first, dict):
        for key in ("EXPLAIN", "QUERY PLAN"):
            if key in first:
                return first[key]
        if len(first) == 1:
            return next(iter(first.values()))
    return rows


def walk_tree(
    root: Any,
    children: Children,
    visit: Visitor,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """
    Pre-order walk over dict nodes

    Lists are transparent: their dict items are visited at the list's depth.

    Returns:
        True when the walk stopped early at `max_depth`
    """
    truncated = False

    def _walk(value: Any, depth: int) -> None:
        nonlocal truncated
        if isinstance(value, list):
            for item in value:
                _walk(item, depth)
            return
        if not isinstance(value, dict):
            return
        if depth > max_depth:
            truncated = True
            return
        visit(value, depth)
        for child in children(value):
            _walk(child, depth + 1)

    _walk(root, 0)
    return truncated


def _all_values(node: dict) -> Iterable[Any]:
    return [v for v in node.values() if isinstance(v, (dict, list))]


def _postgres_children(node: dict) -> Iterable[Any]:
    return node.get("Plans") or []


class PlanAnalyzer:
    """Turns raw EXPLAIN JSON into a PlanSummary"""

    def __init__(self, dialect: Dialect, max_depth: int = DEFAULT_MAX_DEPTH, logger=None):
        self.dialect = dialect
        self.max_depth = max_depth
        self.logger = logger or structlog.get_logger(__name__)

    def analyze(self, raw_plan: Any) -> PlanSummary:
        """
        Interpret a raw plan

        Raises:
            PlanParseError: the value is not a plan of the expected shape
        """
        plan = self.decode(raw_plan)
        if self.dialect is Dialect.MYSQL:
            return self._analyze_mysql(plan)
        if self.dialect is Dialect.POSTGRESQL:
            return self._analyze_postgres(plan)
        raise PlanParseError(f"Unsupported dialect: {self.dialect}")

    def decode(self, raw_plan: Any) -> Any:
        """JSON-decode a textual plan; other values pass through"""
        if isinstance(raw_plan, (bytes, bytearray)):
            raw_plan = raw_plan.decode("utf-8", errors="replace")
        if isinstance(raw_plan, str):
            try:
                return json.loads(raw_plan)
            except json.JSONDecodeError as e:
                raise PlanParseError(f"Execution plan is not valid JSON: {e}") from e
        return raw_plan

    def _analyze_mysql(self, plan: Any) -> PlanSummary:
        if isinstance(plan, list) and plan:
            plan = plan[0]
        if not isinstance(plan, dict) or not isinstance(plan.get("query_block"), dict):
            raise PlanParseError("MySQL execution plan has no query_block")

        query_block = plan["query_block"]
        summary = PlanSummary(cost=_to_float((query_block.get("cost_info") or {}).get("query_cost")))

        def visit(node: dict, depth: int) -> None:
            table = node.get("table")
            if not isinstance(table, dict):
                return
            access_type = table.get("access_type")
            if access_type is None:
                return
            summary.operations.append(str(access_type))
            if access_type == "ALL":
                summary.potential_issues.append(
                    f"full table scan on {table.get('table_name', 'unknown')}"
                )

        self._finish(walk_tree(query_block, _all_values, visit, self.max_depth), summary)
        return summary

    def _analyze_postgres(self, plan: Any) -> PlanSummary:
        if isinstance(plan, list) and plan:
            plan = plan[0]
        if not isinstance(plan, dict) or not isinstance(plan.get("Plan"), dict):
            raise PlanParseError("PostgreSQL execution plan has no Plan node")

        root = plan["Plan"]
        summary = PlanSummary(cost=_to_float(root.get("Total Cost")))

        def visit(node: dict, depth: int) -> None:
            node_type = node.get("Node Type")
            if node_type is None:
                return
            summary.operations.append(str(node_type))
            if node_type == "Seq Scan":
                summary.potential_issues.append(
                    f"full table scan on {node.get('Relation Name', 'unknown')}"
                )

        self._finish(walk_tree(root, _postgres_children, visit, self.max_depth), summary)
        return summary

    def _finish(self, truncated: bool, summary: PlanSummary) -> None:
        if truncated:
            self.logger.warning("plan_traversal_truncated", max_depth=self.max_depth)
            summary.potential_issues.append(
                f"plan traversal stopped at depth {self.max_depth}"
            )


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def analyze_plan(dialect: Dialect, raw_plan: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> PlanSummary:
    """Convenience wrapper around PlanAnalyzer"""
    return PlanAnalyzer(dialect, max_depth=max_depth).analyze(raw_plan)


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "PlanAnalyzer",
    "analyze_plan",
    "build_explain_sql",
    "extract_raw_plan",
    "walk_tree",
]
