"""Report storage for tpcdsbench.

Persists benchmark reports to local JSON files, one directory per run::

    tpcdsbench-output/
      runs/
        run-20260204-210211-abc123/
          report.json
        run-20260204-220000-def456/
          report.json
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from tpcdsbench._constants import DEFAULT_OUTPUT_DIR, RESULT_METRIC_NAME

from .collector import BenchmarkReport

logger = logging.getLogger(__name__)

REPORT_FILENAME = "report.json"


class ReportStorage:
    """Stores benchmark reports under ``<output_dir>/runs``."""

    def __init__(self, output_dir: Path | str = DEFAULT_OUTPUT_DIR):
        self.runs_dir = Path(output_dir) / "runs"

    def run_dir(self, benchmark_id: str) -> Path:
        """Return the per-run directory for *benchmark_id*, creating it if needed."""
        d = self.runs_dir / f"run-{benchmark_id}"
        d.mkdir(parents=True, exist_ok=True)
        return d

    # ------------------------------------------------------------------
    # Save / load
    # ------------------------------------------------------------------

    def save_run(self, report: BenchmarkReport) -> Path:
        """Write *report* as JSON and return the file path."""
        filepath = self.run_dir(report.benchmark_id) / REPORT_FILENAME

        with open(filepath, "w") as f:
            json.dump(report.to_dict(), f, indent=2)

        logger.info("Saved report to %s", filepath)
        return filepath

    def load_run(self, benchmark_id: str) -> BenchmarkReport | None:
        """Load a saved report, or ``None`` if there is no such run."""
        path = self.runs_dir / f"run-{benchmark_id}" / REPORT_FILENAME
        if not path.exists():
            return None
        with open(path) as f:
            return BenchmarkReport.from_dict(json.load(f))

    def list_runs(self) -> list[dict[str, Any]]:
        """List all saved runs.

        Returns:
            List of run summaries (most recent first)
        """
        runs = []
        for filepath in self._iter_report_files():
            summary = self._read_run_summary(filepath)
            if summary:
                runs.append(summary)

        runs.sort(key=lambda r: r.get("start_time") or "", reverse=True)
        return runs

    @staticmethod
    def _read_run_summary(filepath: Path) -> dict[str, Any] | None:
        """Read a report JSON and return a summary dict."""
        try:
            with open(filepath) as f:
                data = json.load(f)

            specs = data.get("benchmark_specs", {})
            results = data.get("query_results", [])
            return {
                "benchmark_id": data["benchmark_id"],
                "start_time": data.get("start_time"),
                "success": data.get("success"),
                "total_elapsed_seconds": data.get("total_elapsed_seconds"),
                "db_name": specs.get("db_name"),
                "scale_in_gb": specs.get("scale_in_gb"),
                "iterations": specs.get("iterations"),
                "query_runs": len(results),
                "failed_runs": sum(1 for r in results if r.get("error_message")),
                "result_seconds": data.get("extra_metrics", {}).get(RESULT_METRIC_NAME),
            }
        except (json.JSONDecodeError, KeyError):
            logger.warning("Skipping unreadable report %s", filepath)
            return None

    def get_latest_run(self) -> BenchmarkReport | None:
        """Get the most recent run, or ``None`` if no runs exist."""
        runs = self.list_runs()
        if not runs:
            return None

        return self.load_run(runs[0]["benchmark_id"])

    def _iter_report_files(self) -> Iterator[Path]:
        if not self.runs_dir.is_dir():
            return
        for run_dir in sorted(self.runs_dir.iterdir(), reverse=True):
            report_file = run_dir / REPORT_FILENAME
            if run_dir.is_dir() and run_dir.name.startswith("run-") and report_file.exists():
                yield report_file
