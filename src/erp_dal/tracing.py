import hashlib
import time
from typing import Awaitable, Optional

from common.observability.context import company_id_var, request_id_var
from common.observability.metrics import dal_metrics, is_metrics_enabled

PROVIDER = "postgres"


def trace_enabled() -> bool:
    """Return True when statement tracing is enabled or OTEL exporter defaults apply."""
    return is_metrics_enabled("ERP_DAL_TRACE_QUERIES")


def hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


def _record_metrics(operation: str, kind: str, status: str, started: float) -> None:
    attributes = {"operation": operation, "statement_kind": kind, "status": status}
    dal_metrics.add_counter(
        "erp.db.statements",
        description="Statements executed through the shim",
        attributes=attributes,
    )
    dal_metrics.record_histogram(
        "erp.db.statement.duration",
        (time.monotonic() - started) * 1000.0,
        description="Statement latency including pool acquisition",
        unit="ms",
        attributes=attributes,
    )


async def trace_statement(
    operation: str,
    *,
    sql: Optional[str],
    kind: str,
    awaitable: Awaitable,
):
    """Await a statement inside an OTEL span when tracing is enabled.

    The raw statement text is never attached; only its hash.
    """
    started = time.monotonic()
    if not trace_enabled():
        try:
            result = await awaitable
        except Exception:
            _record_metrics(operation, kind, "error", started)
            raise
        _record_metrics(operation, kind, "ok", started)
        return result

    from opentelemetry import trace

    tracer = trace.get_tracer("erp_dal")
    with tracer.start_as_current_span(f"erp_dal.statement.{operation}") as span:
        span.set_attribute("db.provider", PROVIDER)
        span.set_attribute("db.operation", kind)
        if sql:
            span.set_attribute("db.statement_hash", hash_sql(sql))
        company_id = company_id_var.get()
        if company_id:
            span.set_attribute("erp.company_id", company_id)
        request_id = request_id_var.get()
        if request_id:
            span.set_attribute("request_id", request_id)
        try:
            result = await awaitable
        except Exception:
            span.set_attribute("db.status", "error")
            _record_metrics(operation, kind, "error", started)
            raise
        span.set_attribute("db.status", "ok")
        _record_metrics(operation, kind, "ok", started)
        return result
