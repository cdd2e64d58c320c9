"""Shared observability helpers."""

from common.observability.metrics import dal_metrics

__all__ = ["dal_metrics"]
