"""Canonical error-code taxonomy for statement failures."""

from __future__ import annotations

from enum import Enum
from typing import Any

from common.models.error_metadata import ErrorCategory


class ErrorCode(str, Enum):
    """Bounded canonical error codes for external contracts and observability."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    DB_CONNECTION_ERROR = "DB_CONNECTION_ERROR"
    DB_POOL_EXHAUSTED = "DB_POOL_EXHAUSTED"
    DB_TIMEOUT = "DB_TIMEOUT"
    DB_SYNTAX_ERROR = "DB_SYNTAX_ERROR"
    DB_CONSTRAINT_VIOLATION = "DB_CONSTRAINT_VIOLATION"
    DB_CONFLICT = "DB_CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_CATEGORY_TO_CODE: dict[ErrorCategory, ErrorCode] = {
    ErrorCategory.TIMEOUT: ErrorCode.DB_TIMEOUT,
    ErrorCategory.CONNECTIVITY: ErrorCode.DB_CONNECTION_ERROR,
    ErrorCategory.POOL_EXHAUSTED: ErrorCode.DB_POOL_EXHAUSTED,
    ErrorCategory.AUTH: ErrorCode.DB_CONNECTION_ERROR,
    ErrorCategory.SYNTAX: ErrorCode.DB_SYNTAX_ERROR,
    ErrorCategory.CONSTRAINT: ErrorCode.DB_CONSTRAINT_VIOLATION,
    ErrorCategory.DATA: ErrorCode.VALIDATION_ERROR,
    ErrorCategory.DEADLOCK: ErrorCode.DB_CONFLICT,
    ErrorCategory.SERIALIZATION: ErrorCode.DB_CONFLICT,
    ErrorCategory.RESOURCE_EXHAUSTED: ErrorCode.DB_TIMEOUT,
    ErrorCategory.TRANSLATION: ErrorCode.VALIDATION_ERROR,
    ErrorCategory.UNKNOWN: ErrorCode.INTERNAL_ERROR,
}


def canonical_error_code_for_category(
    category: Any,
    *,
    fallback: ErrorCode = ErrorCode.INTERNAL_ERROR,
) -> ErrorCode:
    """Resolve canonical error code from category-like values."""
    if category is None:
        return fallback
    try:
        parsed = ErrorCategory(getattr(category, "value", str(category).strip()))
    except ValueError:
        return fallback
    return _CATEGORY_TO_CODE.get(parsed, fallback)


def parse_error_code(
    value: Any,
    *,
    fallback: ErrorCode = ErrorCode.INTERNAL_ERROR,
) -> ErrorCode:
    """Parse string-like values to `ErrorCode` with safe fallback."""
    if isinstance(value, ErrorCode):
        return value
    if value is None:
        return fallback
    try:
        return ErrorCode(str(value).strip())
    except ValueError:
        return fallback
