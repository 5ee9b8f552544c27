# -*- coding: utf-8 -*-
"""
Row limiting

Appends a LIMIT to unbounded SELECT statements. Both checks run on the
normalized query (comments removed, upper-cased). LIMIT detection is a
substring check, so a LIMIT anywhere outside a comment (subquery, CTE,
string literal) leaves the statement untouched.
"""

from .validator import normalize_query


def _line_comment_spans(query: str) -> list[tuple[int, int]]:
    """(start, end) of each `--` comment outside quotes and block comments"""
    spans = []
    quote = None
    i = 0
    while i < len(query):
        char = query[i]
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"', "`"):
            quote = char
        elif query.startswith("/*", i):
            end = query.find("*/", i + 2)
            i = len(query) if end == -1 else end + 2
            continue
        elif query.startswith("--", i):
            end = query.find("\n", i)
            end = len(query) if end == -1 else end
            spans.append((i, end))
            i = end
            continue
        i += 1
    return spans


def strip_query_tail(query: str) -> str:
    """Query without trailing whitespace, semicolons or `--` comments"""
    body = query
    while True:
        trimmed = body.strip().rstrip(";").rstrip()
        spans = _line_comment_spans(trimmed)
        if spans and spans[-1][1] == len(trimmed):
            trimmed = trimmed[:spans[-1][0]].rstrip()
        if trimmed == body:
            return body
        body = trimmed


def has_row_limit(query: str) -> bool:
    return "LIMIT" in normalize_query(query)


def apply_row_limit(query: str, max_rows: int) -> str:
    """
    Bound a SELECT that carries no LIMIT

    Args:
        query: SQL text as given by the caller
        max_rows: row bound to append

    Returns:
        the bounded query, or the input unchanged
    """
    normalized = normalize_query(query)
    if normalized.startswith("SELECT") and "LIMIT" not in normalized:
        return f"{strip_query_tail(query)} LIMIT {int(max_rows)}"
    return query


__all__ = ["apply_row_limit", "has_row_limit", "strip_query_tail"]
