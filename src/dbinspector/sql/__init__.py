# -*- coding: utf-8 -*-
"""SQL Processing Module"""

from .validator import (
    QueryValidator,
    normalize_query,
    validate_query,
    is_simple_read_query,
    get_query_complexity,
)

from .limiter import (
    apply_row_limit,
    has_row_limit,
    strip_query_tail,
)

from .plan import (
    PlanAnalyzer,
    analyze_plan,
    build_explain_sql,
    extract_raw_plan,
    walk_tree,
)

__all__ = [
    # Validator
    "QueryValidator",
    "normalize_query",
    "validate_query",
    "is_simple_read_query",
    "get_query_complexity",
    # Row limiting
    "apply_row_limit",
    "has_row_limit",
    "strip_query_tail",
    # Plan analysis
    "PlanAnalyzer",
    "analyze_plan",
    "build_explain_sql",
    "extract_raw_plan",
    "walk_tree",
]
