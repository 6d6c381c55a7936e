"""TPC-DS query benchmark for tpcdsbench.

Runs the TPC-DS query suite against Spark SQL and reports the sum of
per-query median durations.
"""

from .executor import (
    QueryExecutor,
    QueryExecutorResult,
    SparkSessionExecutor,
    SparkThriftExecutor,
    get_executor,
)
from .queries import TIER_3TB, TIER_10TB, CatalogTier, select_catalog
from .runner import BenchmarkRunner
from .selection import QuerySelector, query_number

__all__ = [
    "TIER_3TB",
    "TIER_10TB",
    "BenchmarkRunner",
    "CatalogTier",
    "QueryExecutor",
    "QueryExecutorResult",
    "QuerySelector",
    "SparkSessionExecutor",
    "SparkThriftExecutor",
    "get_executor",
    "query_number",
    "select_catalog",
]
