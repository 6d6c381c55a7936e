"""Benchmark runner for tpcdsbench.

Runs the selected TPC-DS queries for the configured number of iterations
and reports the sum of per-query median durations as
``tpcds-result-seconds``.

Iterations run one after another and, within an iteration, queries run
in ascending name order. A failing query is recorded and the run moves
on; the summary metric is only reported when every run succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING

from tpcdsbench._constants import EXTRA_CONFS, RESULT_METRIC_NAME
from tpcdsbench.metrics.collector import (
    BenchmarkReport,
    QueryRunResult,
    new_benchmark_id,
    sum_of_medians,
)

from .queries import select_catalog
from .selection import QuerySelector, query_number

if TYPE_CHECKING:
    from tpcdsbench.config.schema import BenchmarkConfig

    from .executor import QueryExecutor

logger = logging.getLogger(__name__)


class BenchmarkRunner:
    """Runs the TPC-DS suite against one engine session."""

    def __init__(
        self,
        config: BenchmarkConfig,
        executor: QueryExecutor | None = None,
        catalog: Mapping[str, str] | None = None,
        on_result: Callable[[QueryRunResult], None] | None = None,
    ):
        """Initialize benchmark runner.

        Args:
            config: Benchmark configuration
            executor: Engine session (default: built from ``config.engine``)
            catalog: ``name -> sql`` mapping (default: tier for the scale)
            on_result: Called with each result as soon as it is recorded
        """
        from .executor import get_executor

        self.config = config
        self.executor = executor if executor is not None else get_executor(config)
        self.catalog = catalog if catalog is not None else select_catalog(config.scale_in_gb)
        self.selector = QuerySelector.from_config(config)
        self.on_result = on_result
        self.extra_metrics: dict[str, float] = {}
        self._results: list[QueryRunResult] = []

    # ------------------------------------------------------------------
    # Session setup
    # ------------------------------------------------------------------

    def configure_session(self) -> None:
        """Apply session settings and select the benchmark database."""
        db_name = self.config.db_name

        for key, value in {**EXTRA_CONFS, **self.config.spark_conf}.items():
            self.executor.set_conf(key, value)

        logger.info("All configs:")
        for key, value in sorted(self.executor.get_all_conf().items()):
            logger.info("  %s = %s", key, value)

        logger.info("Using database %s", db_name)
        self.executor.use_database(db_name)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self) -> BenchmarkReport:
        """Run every iteration and return the report.

        Raises:
            ValueError: If the database name cannot be derived.
            AssertionError: If a query ran a different number of times
                than ``config.iterations``.
        """
        report = BenchmarkReport(
            benchmark_id=new_benchmark_id(),
            start_time=datetime.now(),
            benchmark_specs=self.config.to_specs(),
        )
        self.configure_session()

        for iteration in range(1, self.config.iterations + 1):
            logger.info("Starting iteration %d of %d", iteration, self.config.iterations)
            for name in sorted(self.catalog):
                if not self.selector.should_run(name):
                    logger.info("Skipping: %s %d", name, query_number(name))
                    continue
                self.run_query(name, self.catalog[name], iteration)

        results = self.get_query_results()
        total = sum_of_medians(results, self.config.iterations)
        if total is None:
            logger.warning("Some queries failed; %s is not reported", RESULT_METRIC_NAME)
        else:
            self.report_extra_metric(RESULT_METRIC_NAME, total)

        report.query_results = list(results)
        report.extra_metrics = dict(self.extra_metrics)
        report.end_time = datetime.now()
        return report

    def run_query(self, name: str, sql: str, iteration: int) -> QueryRunResult:
        """Execute one query and record the outcome.

        Anything the executor raises is recorded as a failed run of this
        query; the benchmark carries on with the next one.
        """
        logger.info("Running query %s, iteration %d", name, iteration)
        try:
            exec_result = self.executor.execute_query(sql)
        except Exception as e:
            logger.exception("%s raised while executing", name)
            result = QueryRunResult(
                name=name,
                iteration=iteration,
                error_message=f"{type(e).__name__}: {e}",
            )
        else:
            if exec_result.success:
                result = QueryRunResult(
                    name=name,
                    iteration=iteration,
                    duration_ms=exec_result.duration_ms,
                    rows_returned=exec_result.rows_returned,
                )
                logger.info("%s finished in %.0f ms", name, exec_result.duration_ms)
            else:
                result = QueryRunResult(
                    name=name,
                    iteration=iteration,
                    error_message=exec_result.error,
                )
                logger.error("%s failed: %s", name, exec_result.error)

        self._results.append(result)
        if self.on_result is not None:
            self.on_result(result)
        return result

    def get_query_results(self) -> tuple[QueryRunResult, ...]:
        """Snapshot of every result recorded so far."""
        return tuple(self._results)

    def report_extra_metric(self, name: str, value: float) -> None:
        logger.info("%s = %.3f", name, value)
        self.extra_metrics[name] = value
