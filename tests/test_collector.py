"""Tests for result aggregation and the report model."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tpcdsbench.metrics.collector import (
    BenchmarkReport,
    QueryRunResult,
    lower_median,
    median_seconds_per_query,
    new_benchmark_id,
    sum_of_medians,
)


def ok(name: str, iteration: int, ms: float) -> QueryRunResult:
    return QueryRunResult(name=name, iteration=iteration, duration_ms=ms, rows_returned=1)


def failed(name: str, iteration: int, error: str = "boom") -> QueryRunResult:
    return QueryRunResult(name=name, iteration=iteration, error_message=error)


# ---------------------------------------------------------------------------
# lower_median
# ---------------------------------------------------------------------------


class TestLowerMedian:
    """Tests for lower_median()."""

    def test_odd_count(self):
        assert lower_median([100, 300, 200]) == 200

    def test_even_count_takes_floor_index(self):
        assert lower_median([4, 1, 3, 2]) == 3

    def test_even_count_is_not_averaged(self):
        assert lower_median([10, 20]) == 20

    def test_single(self):
        assert lower_median([7.5]) == 7.5

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            lower_median([])

    def test_does_not_mutate_input(self):
        values = [3, 1, 2]
        lower_median(values)
        assert values == [3, 1, 2]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class TestMedianSecondsPerQuery:
    """Tests for median_seconds_per_query() and sum_of_medians()."""

    def test_three_iterations(self):
        results = [ok("q1", 1, 100), ok("q1", 2, 300), ok("q1", 3, 200)]
        assert median_seconds_per_query(results, 3) == {"q1": pytest.approx(0.2)}
        assert sum_of_medians(results, 3) == pytest.approx(0.2)

    def test_sum_over_queries(self):
        results = [
            ok("q1", 1, 1000),
            ok("q2", 1, 2500),
            ok("q1", 2, 3000),
            ok("q2", 2, 500),
        ]
        # lower median of 2 values is the larger one
        assert sum_of_medians(results, 2) == pytest.approx(3.0 + 2.5)

    def test_error_suppresses_metric(self):
        results = [ok("q1", 1, 100), failed("q2", 1)]
        assert median_seconds_per_query(results, 1) is None
        assert sum_of_medians(results, 1) is None

    def test_missing_duration_suppresses_metric(self):
        results = [ok("q1", 1, 100), QueryRunResult(name="q2", iteration=1)]
        assert sum_of_medians(results, 1) is None

    def test_empty_error_message_counts_as_success(self):
        results = [QueryRunResult(name="q1", iteration=1, duration_ms=50, error_message="")]
        assert sum_of_medians(results, 1) == pytest.approx(0.05)

    def test_non_query_rows_ignored(self):
        results = [ok("q1", 1, 1000), failed("setup", 1), ok("warmup", 1, 99999)]
        assert sum_of_medians(results, 1) == pytest.approx(1.0)

    def test_group_size_mismatch_is_fatal(self):
        results = [ok("q1", 1, 100), ok("q1", 2, 100), ok("q2", 1, 100)]
        with pytest.raises(AssertionError, match="q2"):
            median_seconds_per_query(results, 2)

    def test_no_results_sums_to_zero(self):
        assert sum_of_medians([], 3) == 0.0


# ---------------------------------------------------------------------------
# QueryRunResult / BenchmarkReport
# ---------------------------------------------------------------------------


class TestQueryRunResult:
    """Tests for QueryRunResult."""

    def test_success(self):
        assert ok("q1", 1, 10).success
        assert not failed("q1", 1).success

    def test_frozen(self):
        r = ok("q1", 1, 10)
        with pytest.raises(AttributeError):
            r.name = "q2"  # type: ignore[misc]

    def test_to_dict(self):
        d = failed("q3", 2, "Table not found").to_dict()
        assert d == {
            "name": "q3",
            "iteration": 2,
            "duration_ms": None,
            "error_message": "Table not found",
            "rows_returned": 0,
        }

    def test_from_dict(self):
        r = ok("q9", 3, 1234.5)
        assert QueryRunResult.from_dict(r.to_dict()) == r


class TestBenchmarkReport:
    """Tests for BenchmarkReport."""

    def test_benchmark_id_format(self):
        bid = new_benchmark_id(datetime(2026, 2, 4, 21, 2, 11))
        assert bid.startswith("20260204-210211-")
        assert len(bid.split("-")[-1]) == 6

    def test_elapsed_and_success(self):
        start = datetime(2026, 1, 1, 12, 0, 0)
        report = BenchmarkReport(
            benchmark_id="x",
            start_time=start,
            end_time=start + timedelta(seconds=90),
            query_results=[ok("q1", 1, 10)],
        )
        assert report.total_elapsed_seconds == 90.0
        assert report.success
        assert report.failed_count == 0

    def test_unfinished_report(self):
        report = BenchmarkReport(benchmark_id="x", start_time=datetime.now())
        assert report.total_elapsed_seconds == 0.0
        assert not report.success

    def test_failed_run_not_successful(self):
        start = datetime(2026, 1, 1)
        report = BenchmarkReport(
            benchmark_id="x",
            start_time=start,
            end_time=start,
            query_results=[ok("q1", 1, 10), failed("q2", 1)],
        )
        assert report.failed_count == 1
        assert not report.success

    def test_to_dict_keys(self):
        start = datetime(2026, 1, 1)
        report = BenchmarkReport(
            benchmark_id="abc",
            start_time=start,
            end_time=start + timedelta(seconds=1),
            benchmark_specs={"db_name": "tpcds_sf1_parquet"},
            extra_metrics={"tpcds-result-seconds": 1.5},
        )
        d = report.to_dict()
        assert d["benchmark_id"] == "abc"
        assert d["start_time"] == "2026-01-01T00:00:00"
        assert d["benchmark_specs"] == {"db_name": "tpcds_sf1_parquet"}
        assert d["extra_metrics"] == {"tpcds-result-seconds": 1.5}
        assert d["query_results"] == []
