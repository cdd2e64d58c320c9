"""Sanitization helpers for user-facing error surfaces."""

from __future__ import annotations

import re
from typing import Any

from common.errors.error_codes import ErrorCode, parse_error_code
from common.sanitization.text import redact_sensitive_info

MAX_PUBLIC_ERROR_LENGTH = 2048

_SAFE_ERROR_TEMPLATES: dict[ErrorCode, str] = {
    ErrorCode.DB_CONNECTION_ERROR: "Database connection failed.",
    ErrorCode.DB_POOL_EXHAUSTED: "Database is busy; try again shortly.",
    ErrorCode.DB_TIMEOUT: "Database request timed out.",
    ErrorCode.DB_SYNTAX_ERROR: "Database rejected the request.",
    ErrorCode.DB_CONFLICT: "The record was modified concurrently; try again.",
    ErrorCode.INTERNAL_ERROR: "An internal error occurred.",
}

_SQL_FRAGMENT_RE = re.compile(
    r"(?is)\b(select|insert|update|delete|create|drop|alter|truncate)\b"
    r".*\b(from|into|table|set|values|where)\b"
)
_QUOTED_IDENTIFIER_RE = re.compile(r"[\"'`](?:[^\"'`]|\\.)+[\"'`]")
_DETAIL_RE = re.compile(r"(?is)\bDETAIL:.*$")
_MULTI_SPACE_RE = re.compile(r"\s+")


def _sanitize_sql_like_text(message: str) -> str:
    if _SQL_FRAGMENT_RE.search(message):
        return "Database rejected the request."
    sanitized = _DETAIL_RE.sub("", message)
    sanitized = _QUOTED_IDENTIFIER_RE.sub("<redacted>", sanitized)
    return _MULTI_SPACE_RE.sub(" ", sanitized).strip()


def sanitize_error_message(
    message: Any,
    *,
    error_code: Any = None,
    fallback: str = "Request failed.",
) -> str:
    """Return safe user-facing error text without leaking SQL, values or credentials."""
    code = parse_error_code(error_code) if error_code is not None else None
    template = _SAFE_ERROR_TEMPLATES.get(code) if code is not None else None
    if template:
        return template

    bounded_fallback = (fallback or "Request failed.").strip()[:MAX_PUBLIC_ERROR_LENGTH]
    raw_text = "" if message is None else str(message)
    safe_text = _sanitize_sql_like_text(redact_sensitive_info(raw_text.strip()))
    if not safe_text:
        safe_text = bounded_fallback
    return safe_text[:MAX_PUBLIC_ERROR_LENGTH]
