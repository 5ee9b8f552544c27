# -*- coding: utf-8 -*-
"""
Input Sanitizer
Clean raw strings, validate identifiers and connection URLs, redact secrets
"""

import re
from typing import Optional, Union
from urllib.parse import urlsplit

from ..types import Dialect, IdentifierKind, ValidationResult

MAX_IDENTIFIER_LENGTH = 64

SUPPORTED_SCHEMES = ("mysql", "postgresql", "postgres")

# Null byte and control characters, keeping tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

_BARE_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_$-]*$")

_QUOTED_IDENTIFIERS = {
    Dialect.MYSQL: re.compile(r"^`[^`]+`$"),
    Dialect.POSTGRESQL: re.compile(r'^"[^"]+"$'),
}

_REDACTIONS = [
    (re.compile(r"((?:mysql|postgres(?:ql)?)(?:\+\w+)?://[^:/@\s]+:)[^@\s]+(@)", re.IGNORECASE), r"\1***\2"),
    (re.compile(r"((?:password|pwd|secret|token|key)\s*[=:]\s*)[^\s&,;]+", re.IGNORECASE), r"\1***"),
]


def sanitize(raw: Optional[str]) -> str:
    """Strip null bytes and control characters, then trim whitespace"""
    if not raw:
        return ""
    return _CONTROL_CHARS.sub("", raw).strip()


def validate_identifier(
    name: Optional[str],
    kind: Union[IdentifierKind, str] = IdentifierKind.TABLE,
    dialect: Optional[Dialect] = None,
) -> ValidationResult:
    """
    Validate a database, table or column name

    Accepts a bare identifier (`[A-Za-z_][A-Za-z0-9_$-]*`) or one fully wrapped in
    the dialect's quote character. Without a dialect both quote styles are accepted.

    Args:
        name: identifier to check
        kind: what the identifier names, used in messages
        dialect: restricts the accepted quoting style

    Returns:
        ValidationResult
    """
    label = IdentifierKind(kind).value.capitalize()

    if not name or not name.strip():
        return ValidationResult.fail(f"{label} name cannot be empty")

    candidate = name.strip()
    if dialect is None:
        quoted_patterns = list(_QUOTED_IDENTIFIERS.values())
    else:
        quoted_patterns = [_QUOTED_IDENTIFIERS[dialect]]
    is_quoted = any(pattern.match(candidate) for pattern in quoted_patterns)

    inner = candidate[1:-1] if is_quoted else candidate
    if len(inner) > MAX_IDENTIFIER_LENGTH:
        return ValidationResult.fail(
            f"{label} name cannot exceed {MAX_IDENTIFIER_LENGTH} characters"
        )

    if not is_quoted and not _BARE_IDENTIFIER.match(candidate):
        return ValidationResult.fail(
            f"Invalid {label.lower()} name format. Use letters, digits, underscore, "
            f"dollar sign and hyphen, or quote the name."
        )

    return ValidationResult.ok()


def validate_connection_url(url: Optional[str]) -> ValidationResult:
    """Require a parseable mysql/postgresql URL with host, user and password"""
    if not url or not url.strip():
        return ValidationResult.fail("Connection URL cannot be empty")

    try:
        parsed = urlsplit(url.strip())
        # Accessing port validates it
        parsed.port
    except ValueError as e:
        return ValidationResult.fail(f"Invalid connection URL format: {e}")

    if not parsed.scheme or not parsed.netloc:
        return ValidationResult.fail("Invalid connection URL format")

    if parsed.scheme.lower() not in SUPPORTED_SCHEMES:
        return ValidationResult.fail(
            f"Unsupported URL scheme '{parsed.scheme}'. "
            f"URL must start with mysql://, postgresql:// or postgres://"
        )

    missing = [
        part
        for part, value in (
            ("hostname", parsed.hostname),
            ("username", parsed.username),
            ("password", parsed.password),
        )
        if not value
    ]
    if missing:
        return ValidationResult.fail(f"URL must contain {', '.join(missing)}")

    return ValidationResult.ok()


def redact(text: Optional[str]) -> str:
    """Mask passwords in connection strings and credential parameters"""
    if not text:
        return ""
    result = text
    for pattern, replacement in _REDACTIONS:
        result = pattern.sub(replacement, result)
    return result


__all__ = [
    "MAX_IDENTIFIER_LENGTH",
    "SUPPORTED_SCHEMES",
    "sanitize",
    "validate_identifier",
    "validate_connection_url",
    "redact",
]
