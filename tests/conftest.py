"""Shared fixtures for tpcdsbench test suite."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock, patch

import pytest

from tpcdsbench.benchmark.executor import QueryExecutorResult
from tpcdsbench.config import BenchmarkConfig


def make_config(**overrides) -> BenchmarkConfig:
    """Create a BenchmarkConfig with sensible defaults for testing.

    This is the canonical config factory for tests. Prefer this over
    hand-building dicts so that new required fields are handled in one place.
    """
    base: dict = {
        "format": "parquet",
        "scale_in_gb": 1000,
        "benchmark_path": "s3://bench/tpcds",
    }
    base.update(overrides)
    return BenchmarkConfig(**base)


class FakeExecutor:
    """In-memory QueryExecutor.

    ``durations`` maps query SQL to a list of durations (ms) handed out in
    order, one per call; ``errors`` maps SQL to an error string.
    """

    def __init__(
        self,
        durations: dict[str, list[float]] | None = None,
        errors: dict[str, str] | None = None,
        default_ms: float = 100.0,
    ):
        self.durations = {k: list(v) for k, v in (durations or {}).items()}
        self.errors = errors or {}
        self.default_ms = default_ms
        self.conf: dict[str, str] = {}
        self.database: str | None = None
        self.executed: list[str] = []
        self.closed = False

    def engine_name(self) -> str:
        return "fake"

    def set_conf(self, key: str, value: str) -> None:
        self.conf[key] = value

    def get_all_conf(self) -> dict[str, str]:
        return dict(self.conf)

    def use_database(self, name: str) -> None:
        self.database = name

    def execute_query(self, sql: str) -> QueryExecutorResult:
        self.executed.append(sql)
        if sql in self.errors:
            return QueryExecutorResult(
                sql=sql, engine="fake", duration_ms=5.0, rows_returned=0, error=self.errors[sql]
            )
        queue = self.durations.get(sql)
        duration = queue.pop(0) if queue else self.default_ms
        return QueryExecutorResult(sql=sql, engine="fake", duration_ms=duration, rows_returned=1)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def default_config() -> BenchmarkConfig:
    """A default BenchmarkConfig for tests that don't care about specifics."""
    return make_config()


@pytest.fixture
def fake_executor_factory() -> Callable[..., FakeExecutor]:
    return FakeExecutor


@pytest.fixture
def small_catalog() -> dict[str, str]:
    """Four-query catalog whose SQL text doubles as a lookup key."""
    return {
        "q1": "SELECT 1",
        "q3": "SELECT 3",
        "q5": "SELECT 5",
        "q7": "SELECT 7",
    }


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for tests that exercise beeline calls."""
    with patch("subprocess.run") as m:
        m.return_value = MagicMock(
            returncode=0,
            stdout="",
            stderr="",
        )
        yield m
