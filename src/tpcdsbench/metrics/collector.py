"""Result collection and aggregation for tpcdsbench."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tpcdsbench._constants import QUERY_NAME_PREFIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryRunResult:
    """Outcome of one query in one iteration.

    ``duration_ms`` is set only on success and ``error_message`` only on
    failure.
    """

    name: str
    iteration: int
    duration_ms: float | None = None
    error_message: str | None = None
    rows_returned: int = 0

    @property
    def success(self) -> bool:
        return not self.error_message and self.duration_ms is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "iteration": self.iteration,
            "duration_ms": round(self.duration_ms, 3) if self.duration_ms is not None else None,
            "error_message": self.error_message,
            "rows_returned": self.rows_returned,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueryRunResult:
        return cls(
            name=data["name"],
            iteration=data["iteration"],
            duration_ms=data.get("duration_ms"),
            error_message=data.get("error_message"),
            rows_returned=data.get("rows_returned", 0),
        )


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def lower_median(values: Sequence[float]) -> float:
    """Element at ``floor(n / 2)`` of the ascending-sorted values.

    The two middle values of an even count are never averaged:
    ``[1, 2, 3]`` gives 2 and ``[1, 2, 3, 4]`` gives 3.

    Raises:
        ValueError: If ``values`` is empty.
    """
    if not values:
        raise ValueError("lower_median() of an empty sequence")
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def median_seconds_per_query(
    results: Iterable[QueryRunResult],
    iterations: int,
) -> dict[str, float] | None:
    """Per-query median duration in seconds, keyed by query name.

    Only results whose name starts with ``q`` are considered. Returns
    ``None`` when any of them failed or has no duration, in which case no
    summary should be reported.

    Raises:
        AssertionError: If a query does not have exactly ``iterations``
            results. That means the runner or selector is broken.
    """
    query_results = [r for r in results if r.name.startswith(QUERY_NAME_PREFIX)]

    failed = [r for r in query_results if r.error_message or r.duration_ms is None]
    if failed:
        logger.warning(
            "%d of %d query runs failed; not computing medians",
            len(failed),
            len(query_results),
        )
        return None

    groups: dict[str, list[float]] = defaultdict(list)
    for r in query_results:
        assert r.duration_ms is not None
        groups[r.name].append(r.duration_ms)

    medians: dict[str, float] = {}
    for name, durations in sorted(groups.items()):
        if len(durations) != iterations:
            raise AssertionError(
                f"Expected {iterations} results for {name}, got {len(durations)}"
            )
        medians[name] = lower_median(durations) / 1000
    return medians


def sum_of_medians(results: Iterable[QueryRunResult], iterations: int) -> float | None:
    """Sum of per-query median seconds, or ``None`` if any run failed."""
    medians = median_seconds_per_query(results, iterations)
    if medians is None:
        return None
    return sum(medians.values())


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def new_benchmark_id(now: datetime | None = None) -> str:
    """Return an id of the form ``20260204-210211-abc123``."""
    now = now or datetime.now()
    return now.strftime("%Y%m%d-%H%M%S") + "-" + uuid.uuid4().hex[:6]


@dataclass
class BenchmarkReport:
    """Everything recorded for one benchmark invocation."""

    benchmark_id: str
    start_time: datetime
    end_time: datetime | None = None
    benchmark_specs: dict[str, Any] = field(default_factory=dict)
    query_results: list[QueryRunResult] = field(default_factory=list)
    extra_metrics: dict[str, float] = field(default_factory=dict)

    @property
    def total_elapsed_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.query_results if not r.success)

    @property
    def success(self) -> bool:
        return self.end_time is not None and self.failed_count == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "benchmark_id": self.benchmark_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "total_elapsed_seconds": self.total_elapsed_seconds,
            "success": self.success,
            "benchmark_specs": self.benchmark_specs,
            "query_results": [r.to_dict() for r in self.query_results],
            "extra_metrics": self.extra_metrics,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchmarkReport:
        end_time = data.get("end_time")
        return cls(
            benchmark_id=data["benchmark_id"],
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(end_time) if end_time else None,
            benchmark_specs=data.get("benchmark_specs", {}),
            query_results=[QueryRunResult.from_dict(r) for r in data.get("query_results", [])],
            extra_metrics=data.get("extra_metrics", {}),
        )
