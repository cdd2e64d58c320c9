from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from common.models.error_metadata import ErrorCategory


RETRYABLE_CATEGORIES = frozenset(
    {
        ErrorCategory.TIMEOUT,
        ErrorCategory.CONNECTIVITY,
        ErrorCategory.POOL_EXHAUSTED,
        ErrorCategory.DEADLOCK,
        ErrorCategory.SERIALIZATION,
        ErrorCategory.RESOURCE_EXHAUSTED,
    }
)

# Exact SQLSTATE codes take precedence over their two-character class.
_SQLSTATE_CODES: dict[str, ErrorCategory] = {
    "40P01": ErrorCategory.DEADLOCK,
    "40001": ErrorCategory.SERIALIZATION,
    "57014": ErrorCategory.TIMEOUT,
    "55P03": ErrorCategory.TIMEOUT,
    "42501": ErrorCategory.AUTH,
    "57P01": ErrorCategory.CONNECTIVITY,
    "57P02": ErrorCategory.CONNECTIVITY,
    "57P03": ErrorCategory.CONNECTIVITY,
}
_SQLSTATE_CLASSES: dict[str, ErrorCategory] = {
    "08": ErrorCategory.CONNECTIVITY,
    "28": ErrorCategory.AUTH,
    "42": ErrorCategory.SYNTAX,
    "23": ErrorCategory.CONSTRAINT,
    "22": ErrorCategory.DATA,
    "53": ErrorCategory.RESOURCE_EXHAUSTED,
    "54": ErrorCategory.RESOURCE_EXHAUSTED,
}


@dataclass(frozen=True)
class ErrorClassification:
    """Structured backend error classification."""

    category: ErrorCategory
    is_retryable: bool
    sqlstate: Optional[str] = None


def classify_error(exc: BaseException) -> ErrorCategory:
    """Classify an error into a backend-agnostic category."""
    return classify_error_info(exc).category


def classify_error_info(exc: BaseException) -> ErrorClassification:
    """Classify a driver or runtime error, preferring its SQLSTATE when present."""
    sqlstate = getattr(exc, "sqlstate", None)
    if isinstance(sqlstate, str) and len(sqlstate) == 5:
        category = _SQLSTATE_CODES.get(sqlstate) or _SQLSTATE_CLASSES.get(sqlstate[:2])
        if category is not None:
            return _classification(category, sqlstate)
    else:
        sqlstate = None

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return _classification(ErrorCategory.TIMEOUT, sqlstate)
    if isinstance(exc, (ConnectionError, OSError)):
        return _classification(ErrorCategory.CONNECTIVITY, sqlstate)

    message = str(exc).lower()
    class_name = exc.__class__.__name__.lower()

    if _matches_any(message, ("timeout", "timed out", "canceling statement")):
        return _classification(ErrorCategory.TIMEOUT, sqlstate)
    if _matches_any(
        message,
        (
            "could not connect",
            "connection refused",
            "connection reset",
            "connection is closed",
            "connection was closed",
            "server closed the connection",
            "ssl",
        ),
    ):
        return _classification(ErrorCategory.CONNECTIVITY, sqlstate)
    if _matches_any(message, ("password authentication failed", "permission denied")):
        return _classification(ErrorCategory.AUTH, sqlstate)
    if _matches_any(message, ("syntax error", "does not exist")):
        return _classification(ErrorCategory.SYNTAX, sqlstate)
    if _matches_any(message, ("violates", "duplicate key")):
        return _classification(ErrorCategory.CONSTRAINT, sqlstate)
    if _matches_any(message, ("deadlock detected",)):
        return _classification(ErrorCategory.DEADLOCK, sqlstate)
    if _matches_any(message, ("could not serialize", "serialization failure")):
        return _classification(ErrorCategory.SERIALIZATION, sqlstate)
    if _matches_any(message, ("too many clients", "out of memory", "disk full")):
        return _classification(ErrorCategory.RESOURCE_EXHAUSTED, sqlstate)

    if class_name in {"interfaceerror", "connectiondoesnotexisterror"}:
        return _classification(ErrorCategory.CONNECTIVITY, sqlstate)

    return _classification(ErrorCategory.UNKNOWN, sqlstate)


def _classification(category: ErrorCategory, sqlstate: Optional[str]) -> ErrorClassification:
    return ErrorClassification(
        category=category,
        is_retryable=category in RETRYABLE_CATEGORIES,
        sqlstate=sqlstate,
    )


def _matches_any(message: str, patterns: tuple[str, ...]) -> bool:
    return any(pattern in message for pattern in patterns)
