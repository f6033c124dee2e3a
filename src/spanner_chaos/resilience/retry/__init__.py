"""Resilience – retry backed by tenacity."""
from spanner_chaos.resilience.retry.tenacity_adapter import TenacityRetryPolicy

__all__ = ["TenacityRetryPolicy"]
