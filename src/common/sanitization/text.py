"""Redaction of credentials in free-form text (log lines, error messages)."""

import re

_URL_CREDENTIALS_RE = re.compile(r"([a-zA-Z][a-zA-Z0-9+.-]*://)([^:/@\s]+):([^@\s]+)@")
_KEY_VALUE_RE = re.compile(
    r"(?i)\b(password|passwd|pwd|token|secret|api_key)([ \t]*[=:][ \t]*)[^\s,;&]+"
)


def redact_sensitive_info(text: str) -> str:
    """Redact credentials from connection strings and key/value pairs.

    >>> redact_sensitive_info("postgresql://app:s3cret@db:5432/erp")
    'postgresql://<user>:<password>@db:5432/erp'
    """
    if not text:
        return text
    res = _URL_CREDENTIALS_RE.sub(r"\1<user>:<password>@", text)
    return _KEY_VALUE_RE.sub(r"\1\2<redacted>", res)
