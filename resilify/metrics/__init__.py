"""Call counting for resilient functions."""

from resilify.metrics.counter import CallMetrics, FunctionResult

__all__ = ["CallMetrics", "FunctionResult"]
