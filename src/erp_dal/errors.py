"""Typed statement errors raised by the shim.

Every backend failure is re-raised as a :class:`StatementError` subclass
chained to the driver exception (``__cause__``), with the original SQL
template attached for diagnostics.
"""

from __future__ import annotations

from typing import Optional

from common.errors.error_codes import canonical_error_code_for_category
from common.errors.sanitization import sanitize_error_message
from common.models.error_metadata import ErrorCategory, ErrorPayload
from common.sanitization.text import redact_sensitive_info
from erp_dal.error_classification import classify_error_info


class StatementError(Exception):
    """Base class for failures surfaced by the statement shim."""

    default_category = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        template: Optional[str] = None,
        operation: Optional[str] = None,
        original: Optional[BaseException] = None,
        category: Optional[ErrorCategory] = None,
        is_retryable: bool = False,
        sqlstate: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.template = template
        self.operation = operation
        self.original = original
        self.category = category or self.default_category
        self.is_retryable = is_retryable
        self.sqlstate = sqlstate

    def __str__(self) -> str:
        if self.template is None:
            return self.message
        return f"{self.message} [SQL: {self.template.strip()}]"

    def to_payload(self) -> ErrorPayload:
        """Build a sanitized error body safe to return to HTTP clients."""
        code = canonical_error_code_for_category(self.category)
        return ErrorPayload(
            category=self.category,
            code=code.value,
            message=sanitize_error_message(self.message, error_code=code),
            retryable=self.is_retryable,
            sqlstate=self.sqlstate,
        )


class QueryError(StatementError):
    """The backend rejected a read (``all`` / ``get``)."""


class ExecError(StatementError):
    """The backend rejected a write or DDL statement (``run`` / ``exec``)."""


class PoolExhaustedError(QueryError, ExecError):
    """No pooled connection became available within the acquisition timeout."""

    default_category = ErrorCategory.POOL_EXHAUSTED

    def __init__(self, message: str, *, timeout_seconds: Optional[float] = None, **kwargs) -> None:
        kwargs.setdefault("is_retryable", True)
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds


class PoolNotInitializedError(StatementError, RuntimeError):
    """A statement was issued before Database.init() or after Database.close()."""


class TranslationError(StatementError, ValueError):
    """The template violates an assumption of the SQLite-to-PostgreSQL translation."""

    default_category = ErrorCategory.TRANSLATION


class ParameterCountError(TranslationError):
    """The number of bound arguments does not match the statement's placeholders."""

    def __init__(self, *, expected: int, received: int, template: Optional[str] = None) -> None:
        qualifier = "Not enough" if received < expected else "Too many"
        super().__init__(
            f"{qualifier} parameters for placeholders: expected {expected}, got {received}.",
            template=template,
        )
        self.expected = expected
        self.received = received


def wrap_driver_error(
    error_type: type,
    exc: BaseException,
    *,
    template: Optional[str],
    operation: str,
) -> StatementError:
    """Build a typed shim error for a driver failure, carrying its classification."""
    info = classify_error_info(exc)
    detail = redact_sensitive_info(str(exc)) or exc.__class__.__name__
    return error_type(
        f"{operation} failed: {detail}",
        template=template,
        operation=operation,
        original=exc,
        category=info.category,
        is_retryable=info.is_retryable,
        sqlstate=info.sqlstate,
    )
