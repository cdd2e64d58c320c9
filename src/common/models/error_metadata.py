"""Structured error metadata models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(str, Enum):
    """Canonical, backend-agnostic statement error categories."""

    TIMEOUT = "timeout"
    CONNECTIVITY = "connectivity"
    POOL_EXHAUSTED = "pool_exhausted"
    AUTH = "auth"
    SYNTAX = "syntax"
    CONSTRAINT = "constraint"
    DATA = "data"
    DEADLOCK = "deadlock"
    SERIALIZATION = "serialization"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    TRANSLATION = "translation"
    UNKNOWN = "unknown"


class ErrorPayload(BaseModel):
    """Outward-facing error body for HTTP handlers.

    `message` is always sanitized; raw backend text stays in server logs.
    """

    model_config = ConfigDict(frozen=True)

    category: ErrorCategory = Field(..., description="Backend-agnostic error category")
    code: str = Field(..., description="Stable machine-readable error code")
    message: str = Field(..., max_length=2048, description="Sanitized user-facing message")
    retryable: bool = Field(False, description="Whether retrying the request may succeed")
    sqlstate: Optional[str] = Field(None, description="PostgreSQL SQLSTATE when known")
