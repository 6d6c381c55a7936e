"""Metrics module for tpcdsbench.

Aggregates per-query timings and stores benchmark reports.
"""

from .collector import (
    BenchmarkReport,
    QueryRunResult,
    lower_median,
    median_seconds_per_query,
    new_benchmark_id,
    sum_of_medians,
)
from .storage import ReportStorage

__all__ = [
    "BenchmarkReport",
    "QueryRunResult",
    "ReportStorage",
    "lower_median",
    "median_seconds_per_query",
    "new_benchmark_id",
    "sum_of_medians",
]
