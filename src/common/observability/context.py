"""Request-scoped context variables attached to statement spans."""

from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
company_id_var: ContextVar[Optional[str]] = ContextVar("company_id", default=None)
