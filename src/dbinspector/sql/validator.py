# -*- coding: utf-8 -*-
"""
SQL Query Validator
Read-only whitelist enforcement and SQL injection detection

Checks run in a fixed order on a normalized copy of the query
(comments stripped, whitespace collapsed, upper-cased):

1. forbidden keywords anywhere in the statement
2. forbidden functions
3. allowed leading keyword
4. injection patterns
5. resource bounds

Later checks rely on the normalized form produced by the earlier ones.
"""

import re
from typing import Optional

import structlog

from ..types import Dialect, ValidationResult


MAX_QUERY_LENGTH = 10_000
MAX_OPEN_PARENS = 50


def normalize_query(query: str) -> str:
    """Strip comments, collapse whitespace and upper-case"""
    normalized = re.sub(r"--[^\r\n]*", "", query)
    normalized = re.sub(r"/\*[\s\S]*?\*/", "", normalized)
    normalized = re.sub(r"\s+", " ", normalized)
    return normalized.strip().upper()


class QueryValidator:
    """
    Read-only SQL validator

    A heuristic, layered filter, not a parser: each check is independent and
    a query must pass all of them.
    """

    # Mutating, administrative and session keywords (whole-word match)
    FORBIDDEN_KEYWORDS = [
        "INSERT", "UPDATE", "DELETE", "DROP", "CREATE",
        "ALTER", "TRUNCATE", "REPLACE", "MERGE", "CALL",
        "EXEC", "EXECUTE", "LOAD", "IMPORT", "BULK",
        "GRANT", "REVOKE", "SET", "USE", "START",
        "BEGIN", "COMMIT", "ROLLBACK", "SAVEPOINT",
        "LOCK", "UNLOCK", "FLUSH", "RESET", "PURGE",
        "KILL", "SHUTDOWN", "RESTART", "COPY",
    ]

    # Statements may only start with one of these
    ALLOWED_KEYWORDS = [
        "SELECT", "SHOW", "DESCRIBE", "DESC", "EXPLAIN",
        "ANALYZE", "CHECK", "CHECKSUM", "OPTIMIZE", "WITH", "VALUES",
    ]

    SIMPLE_READ_KEYWORDS = ["SELECT", "SHOW", "DESCRIBE", "DESC", "EXPLAIN", "WITH", "VALUES"]

    # File, OS and timing functions (substring match)
    FORBIDDEN_FUNCTIONS = [
        "LOAD_FILE", "INTO OUTFILE", "INTO DUMPFILE",
        "SYSTEM", "USER_DEFINED_FUNCTION", "BENCHMARK",
        "PG_READ_FILE", "PG_LS_DIR", "PG_EXECUTE",
    ]

    INJECTION_PATTERNS = [
        r";\s*(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER)",  # stacked statements
        r"UNION\s+(ALL\s+)?SELECT",                               # union-based
        r"'\s*(OR|AND)\s*'[^']*'\s*=",                            # quote tautology
        r"'\s*(OR|AND)\s*\d+\s*=\s*\d+",                          # numeric tautology
        r"CONCAT\s*\(\s*0X[0-9A-F]+",                             # hex concatenation
        r"(SLEEP|BENCHMARK)\s*\(",                                # time-based probing
    ]

    MYSQL_INJECTION_PATTERNS = [
        r"INFORMATION_SCHEMA\.\w+\s+(WHERE|AND|OR)",
    ]

    _FORBIDDEN_KEYWORD_RES = [
        (keyword, re.compile(rf"\b{keyword}\b", re.IGNORECASE)) for keyword in FORBIDDEN_KEYWORDS
    ]

    def __init__(self, dialect: Dialect = Dialect.MYSQL, logger=None):
        self.dialect = dialect
        self.logger = logger or structlog.get_logger(__name__)
        patterns = list(self.INJECTION_PATTERNS)
        if dialect is Dialect.MYSQL:
            patterns.extend(self.MYSQL_INJECTION_PATTERNS)
        self._injection_res = [re.compile(p, re.IGNORECASE) for p in patterns]

    def validate(self, query: Optional[str]) -> ValidationResult:
        """
        Classify a query as safe to execute or rejected

        Returns:
            ValidationResult with advisory warnings when valid
        """
        if not query or not query.strip():
            return ValidationResult.fail("Query cannot be empty")

        normalized = normalize_query(query)

        for check in (
            self._check_forbidden_keywords,
            self._check_forbidden_functions,
            self._check_allowed_start,
            self._check_injection_patterns,
            self._check_resource_bounds,
        ):
            error = check(normalized)
            if error:
                self.logger.debug("query_rejected", check=check.__name__.lstrip("_"), reason=error)
                return ValidationResult.fail(error)

        return ValidationResult.ok(self._get_warnings(normalized))

    def is_valid(self, query: str) -> bool:
        return self.validate(query).is_valid

    def _check_forbidden_keywords(self, normalized: str) -> Optional[str]:
        for keyword, pattern in self._FORBIDDEN_KEYWORD_RES:
            if pattern.search(normalized):
                return (
                    f"Forbidden keyword detected: {keyword}. "
                    f"Only read-only operations are allowed."
                )
        return None

    def _check_forbidden_functions(self, normalized: str) -> Optional[str]:
        for func in self.FORBIDDEN_FUNCTIONS:
            if func in normalized:
                return (
                    f"Forbidden function detected: {func}. "
                    f"This function is not allowed for security reasons."
                )
        return None

    def _check_allowed_start(self, normalized: str) -> Optional[str]:
        first_word = normalized.split(" ")[0]
        if first_word not in self.ALLOWED_KEYWORDS:
            return f"Query must start with one of: {', '.join(self.ALLOWED_KEYWORDS)}"
        return None

    def _check_injection_patterns(self, normalized: str) -> Optional[str]:
        for pattern in self._injection_res:
            if pattern.search(normalized):
                return "Query contains suspicious patterns that may indicate SQL injection"
        return None

    def _check_resource_bounds(self, normalized: str) -> Optional[str]:
        if len(normalized) > MAX_QUERY_LENGTH:
            return f"Query is too long. Maximum allowed length is {MAX_QUERY_LENGTH:,} characters."
        if normalized.count("(") > MAX_OPEN_PARENS:
            return f"Query has too many nested expressions. Maximum allowed is {MAX_OPEN_PARENS}."
        return None

    def _get_warnings(self, normalized: str) -> list[str]:
        warnings = []

        if "SELECT *" in normalized:
            warnings.append(
                "Using SELECT * may return large result sets. Consider specifying specific columns."
            )

        if "ORDER BY" in normalized and "LIMIT" not in normalized:
            warnings.append("ORDER BY without LIMIT may be slow on large tables.")

        if "LIKE %" in normalized or "LIKE '%" in normalized:
            warnings.append("Leading wildcard in LIKE patterns may cause slow queries.")

        if re.search(r"FROM\s+\w+\s*,\s*\w+", normalized) and "WHERE" not in normalized:
            warnings.append(
                "Potential cartesian product detected. Consider adding WHERE conditions."
            )

        return warnings


def validate_query(query: str, dialect: Dialect = Dialect.MYSQL) -> ValidationResult:
    """Validate a free-form SQL string"""
    return QueryValidator(dialect).validate(query)


def is_simple_read_query(query: str) -> bool:
    """Whether the statement starts with a plain read keyword"""
    first_word = normalize_query(query).split(" ")[0]
    return first_word in QueryValidator.SIMPLE_READ_KEYWORDS


def get_query_complexity(query: str) -> str:
    """
    Bucket a query into low / medium / high complexity

    joins x2, extra SELECTs x1, aggregates x1, ORDER BY +1, GROUP BY +2, HAVING +1
    """
    normalized = normalize_query(query)
    complexity = 0

    complexity += len(re.findall(r"\bJOIN\b", normalized)) * 2
    complexity += max(len(re.findall(r"\bSELECT\b", normalized)) - 1, 0)
    complexity += len(re.findall(r"\b(COUNT|SUM|AVG|MAX|MIN|GROUP_CONCAT)\b", normalized))
    if "ORDER BY" in normalized:
        complexity += 1
    if "GROUP BY" in normalized:
        complexity += 2
    if "HAVING" in normalized:
        complexity += 1

    if complexity <= 2:
        return "low"
    if complexity <= 6:
        return "medium"
    return "high"


__all__ = [
    "MAX_QUERY_LENGTH",
    "MAX_OPEN_PARENS",
    "QueryValidator",
    "normalize_query",
    "validate_query",
    "is_simple_read_query",
    "get_query_complexity",
]
