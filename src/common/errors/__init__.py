"""Common error taxonomy helpers."""

from common.errors.error_codes import ErrorCode, canonical_error_code_for_category
from common.errors.sanitization import sanitize_error_message

__all__ = [
    "ErrorCode",
    "canonical_error_code_for_category",
    "sanitize_error_message",
]
