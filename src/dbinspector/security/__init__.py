# -*- coding: utf-8 -*-
"""Security Module"""

from .sanitizer import (
    MAX_IDENTIFIER_LENGTH,
    SUPPORTED_SCHEMES,
    sanitize,
    validate_identifier,
    validate_connection_url,
    redact,
)

__all__ = [
    "MAX_IDENTIFIER_LENGTH",
    "SUPPORTED_SCHEMES",
    "sanitize",
    "validate_identifier",
    "validate_connection_url",
    "redact",
]
