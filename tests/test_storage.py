"""Tests for ReportStorage."""

from __future__ import annotations

import json
from datetime import datetime, timedelta

from tpcdsbench.metrics import BenchmarkReport, QueryRunResult, ReportStorage


def make_report(benchmark_id: str, start: datetime, metric: float | None = 1.25) -> BenchmarkReport:
    return BenchmarkReport(
        benchmark_id=benchmark_id,
        start_time=start,
        end_time=start + timedelta(seconds=30),
        benchmark_specs={"db_name": "tpcds_sf1000_parquet", "scale_in_gb": 1000, "iterations": 1},
        query_results=[
            QueryRunResult(name="q1", iteration=1, duration_ms=1250.0, rows_returned=3),
            QueryRunResult(name="q2", iteration=1, error_message=None, duration_ms=10.0),
        ],
        extra_metrics={"tpcds-result-seconds": metric} if metric is not None else {},
    )


class TestReportStorage:
    """Tests for saving and loading reports."""

    def test_save_layout(self, tmp_path):
        storage = ReportStorage(tmp_path)
        path = storage.save_run(make_report("20260101-000000-aaaaaa", datetime(2026, 1, 1)))
        assert path == tmp_path / "runs" / "run-20260101-000000-aaaaaa" / "report.json"
        data = json.loads(path.read_text())
        assert data["extra_metrics"]["tpcds-result-seconds"] == 1.25

    def test_load_round_trip(self, tmp_path):
        storage = ReportStorage(tmp_path)
        report = make_report("r1", datetime(2026, 1, 1))
        storage.save_run(report)
        loaded = storage.load_run("r1")
        assert loaded is not None
        assert loaded.query_results == report.query_results
        assert loaded.start_time == report.start_time
        assert loaded.extra_metrics == report.extra_metrics

    def test_load_missing(self, tmp_path):
        assert ReportStorage(tmp_path).load_run("nope") is None

    def test_list_runs_newest_first(self, tmp_path):
        storage = ReportStorage(tmp_path)
        storage.save_run(make_report("old", datetime(2026, 1, 1)))
        storage.save_run(make_report("new", datetime(2026, 3, 1), metric=None))
        runs = storage.list_runs()
        assert [r["benchmark_id"] for r in runs] == ["new", "old"]
        assert runs[0]["result_seconds"] is None
        assert runs[1]["result_seconds"] == 1.25
        assert runs[1]["query_runs"] == 2
        assert runs[1]["db_name"] == "tpcds_sf1000_parquet"

    def test_list_runs_without_directory(self, tmp_path):
        assert ReportStorage(tmp_path / "missing").list_runs() == []

    def test_unreadable_report_skipped(self, tmp_path):
        storage = ReportStorage(tmp_path)
        storage.save_run(make_report("good", datetime(2026, 1, 1)))
        bad = storage.run_dir("bad") / "report.json"
        bad.write_text("{not json")
        assert [r["benchmark_id"] for r in storage.list_runs()] == ["good"]

    def test_get_latest_run(self, tmp_path):
        storage = ReportStorage(tmp_path)
        assert storage.get_latest_run() is None
        storage.save_run(make_report("a", datetime(2026, 1, 1)))
        storage.save_run(make_report("b", datetime(2026, 2, 1)))
        latest = storage.get_latest_run()
        assert latest is not None
        assert latest.benchmark_id == "b"
