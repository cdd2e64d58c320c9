"""Sanitization utilities."""

from .text import redact_sensitive_info

__all__ = ["redact_sensitive_info"]
