"""Query executor abstraction for tpcdsbench.

Provides a protocol for the engine session the runner drives, with two
implementations:

- ``SparkSessionExecutor`` -- an in-process ``pyspark`` SparkSession
- ``SparkThriftExecutor`` -- ``beeline`` against a Spark Thrift Server

Usage::

    from tpcdsbench.benchmark.executor import get_executor

    executor = get_executor(config)
    executor.set_conf("spark.sql.shuffle.partitions", "400")
    executor.use_database("tpcds_sf1000_parquet")
    result = executor.execute_query("SELECT 1")

No timeout is applied here; a hung query blocks the run until the engine
gives up.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from tpcdsbench.config.schema import BenchmarkConfig

logger = logging.getLogger(__name__)

# Engine error text kept in results and reports
MAX_ERROR_CHARS = 500


@dataclass
class QueryExecutorResult:
    """Result of a single query execution via an engine executor."""

    sql: str
    engine: str
    duration_ms: float
    rows_returned: int
    raw_output: str = ""
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class QueryExecutor(Protocol):
    """Protocol for query engine sessions."""

    def engine_name(self) -> str: ...

    def set_conf(self, key: str, value: str) -> None: ...

    def get_all_conf(self) -> dict[str, str]: ...

    def use_database(self, name: str) -> None: ...

    def execute_query(self, sql: str) -> QueryExecutorResult: ...

    def close(self) -> None: ...


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


def _short_error(text: str) -> str:
    text = text.strip()
    return text[:MAX_ERROR_CHARS] if text else "Unknown error"


class SparkSessionExecutor:
    """Runs queries on an in-process SparkSession.

    The session is created on first use (Hive support enabled so that the
    benchmark databases in the metastore are visible) unless one is passed
    in. Each query is timed around ``collect()`` so the full result is
    materialised on the driver.
    """

    def __init__(self, app_name: str = "tpcdsbench", spark: Any = None):
        self.app_name = app_name
        self._spark = spark

    def engine_name(self) -> str:
        return "spark"

    @property
    def spark(self) -> Any:
        if self._spark is None:
            from pyspark.sql import SparkSession

            logger.info("Starting SparkSession %s", self.app_name)
            self._spark = (
                SparkSession.builder.appName(self.app_name).enableHiveSupport().getOrCreate()
            )
            self._spark.sparkContext.setLogLevel("WARN")
        return self._spark

    def set_conf(self, key: str, value: str) -> None:
        self.spark.conf.set(key, value)

    def get_all_conf(self) -> dict[str, str]:
        """Effective session settings (``SET`` output)."""
        rows = self.spark.sql("SET").collect()
        return {row[0]: row[1] for row in rows}

    def use_database(self, name: str) -> None:
        # Quote each part so that catalog-qualified names (hive_cat.db) work
        quoted = ".".join(f"`{part}`" for part in name.split("."))
        self.spark.sql(f"USE {quoted}")

    def execute_query(self, sql: str) -> QueryExecutorResult:
        start = time.monotonic()
        try:
            rows = self.spark.sql(sql).collect()
        except Exception as e:
            # AnalysisException, Py4JJavaError and friends all end up here
            elapsed = _elapsed_ms(start)
            logger.debug("Query failed after %.0f ms", elapsed, exc_info=True)
            return QueryExecutorResult(
                sql=sql,
                engine="spark",
                duration_ms=elapsed,
                rows_returned=0,
                error=_short_error(str(e)),
            )
        return QueryExecutorResult(
            sql=sql,
            engine="spark",
            duration_ms=_elapsed_ms(start),
            rows_returned=len(rows),
        )

    def close(self) -> None:
        if self._spark is not None:
            self._spark.stop()
            self._spark = None


class SparkThriftExecutor:
    """Executes queries with ``beeline`` against a Spark Thrift Server.

    Every query is a separate ``beeline`` process, so session settings and
    the current database travel in the JDBC URL:
    ``jdbc:hive2://host:port/<db>?k1=v1;k2=v2``.
    """

    def __init__(self, jdbc_url: str, beeline: str = "beeline"):
        self.jdbc_url = jdbc_url.rstrip("/")
        self.beeline = beeline
        self.database: str | None = None
        self._conf: dict[str, str] = {}

    def engine_name(self) -> str:
        return "spark-thrift"

    def set_conf(self, key: str, value: str) -> None:
        self._conf[key] = value

    def get_all_conf(self) -> dict[str, str]:
        return dict(self._conf)

    def use_database(self, name: str) -> None:
        self.database = name

    def connection_url(self) -> str:
        url = self.jdbc_url
        if self.database:
            url += f"/{self.database}"
        if self._conf:
            url += "?" + ";".join(f"{k}={v}" for k, v in self._conf.items())
        return url

    def execute_query(self, sql: str) -> QueryExecutorResult:
        cmd = [
            self.beeline,
            "-u",
            self.connection_url(),
            "-e",
            sql,
            "--silent=true",
            "--outputformat=tsv2",
        ]

        start = time.monotonic()
        try:
            # beeline output is not guaranteed to be valid UTF-8
            result = subprocess.run(
                cmd, capture_output=True, text=True, encoding="utf-8", errors="replace"
            )
        except OSError as e:
            return QueryExecutorResult(
                sql=sql,
                engine="spark-thrift",
                duration_ms=_elapsed_ms(start),
                rows_returned=0,
                error=f"Failed to launch {self.beeline}: {e}",
            )
        elapsed = _elapsed_ms(start)

        if result.returncode != 0:
            return QueryExecutorResult(
                sql=sql,
                engine="spark-thrift",
                duration_ms=elapsed,
                rows_returned=0,
                raw_output=result.stdout or "",
                error=_short_error(result.stderr or ""),
            )

        output = result.stdout.strip()
        # beeline tsv2 includes a header row; skip it for row count
        lines = output.split("\n") if output else []
        data_rows = lines[1:]
        return QueryExecutorResult(
            sql=sql,
            engine="spark-thrift",
            duration_ms=elapsed,
            rows_returned=len(data_rows),
            raw_output=output,
        )

    def close(self) -> None:
        pass


def get_executor(config: BenchmarkConfig) -> QueryExecutor:
    """Factory: return the QueryExecutor for the configured engine.

    Raises:
        ValueError: If the engine type is not supported.
    """
    engine_type = config.engine.value

    if engine_type == "spark":
        return SparkSessionExecutor(app_name=f"tpcdsbench-{config.db_name}")
    elif engine_type == "spark-thrift":
        return SparkThriftExecutor(jdbc_url=config.jdbc_url)
    else:
        raise ValueError(f"Unsupported query engine: {engine_type}")
