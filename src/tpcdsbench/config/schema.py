"""Pydantic models for tpcdsbench configuration.

Every field can come from a YAML file or from the command line. Raw
command-line values arrive as strings; the validators below convert them
so that the same rules apply to both sources.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tpcdsbench._constants import DEFAULT_JDBC_URL, DEFAULT_OUTPUT_DIR

# =============================================================================
# Enums
# =============================================================================


class EngineType(str, Enum):
    """Supported query engines."""

    SPARK = "spark"
    SPARK_THRIFT = "spark-thrift"


# =============================================================================
# Helpers
# =============================================================================


_INT_RE = re.compile(r"[+-]?\d+")


def parse_int(value: Any) -> int:
    """Parse a whole number given as an int or a decimal string.

    ``"3.0"``, ``"1e3"``, floats and booleans are rejected rather than
    truncated.

    Raises:
        ValueError: If the value is not a whole number.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INT_RE.fullmatch(value.strip()):
        return int(value.strip())
    raise ValueError(f"invalid integer: {value!r}")


def parse_query_list(value: Any) -> frozenset[int]:
    """Parse a comma-separated list of query numbers.

    Accepts ``"3,7"``, ``[3, 7]`` or ``None``. Blank entries are ignored so
    that ``""`` and ``"3,"`` behave sensibly.

    Raises:
        ValueError: If an entry is not an integer.
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items: list[Any] = [part.strip() for part in value.split(",")]
        items = [part for part in items if part]
    elif isinstance(value, int):
        items = [value]
    else:
        items = list(value)

    numbers = set()
    for item in items:
        try:
            numbers.add(parse_int(item))
        except ValueError:
            raise ValueError(f"invalid query number: {item!r}")  # noqa: B904
    return frozenset(numbers)


# =============================================================================
# Root config
# =============================================================================


class BenchmarkConfig(BaseModel):
    """Settings for one TPC-DS benchmark invocation.

    ``format`` is optional at the model level so that a config can be built
    programmatically without it; deriving the database name then fails.
    The command-line parser requires it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    format: str | None = Field(
        default=None,
        description="Spark's short name for the file format (e.g. parquet, delta)",
    )
    scale_in_gb: int = Field(description="Scale factor of the TPC-DS dataset in GB")
    user_defined_db_name: str | None = Field(
        default=None,
        description="Database to query instead of tpcds_sf<scale>_<format>",
    )
    iterations: int = Field(default=3, ge=1, description="Number of times to run the queries")
    benchmark_path: str = Field(
        description="Cloud path of the benchmark tables; reports go to output_dir",
    )
    query_offset: int = Field(default=1, description="Lowest query number to run")
    query_limit: int = Field(
        default=100000,
        description="Queries numbered above query_offset + query_limit are skipped",
    )
    skipped_queries: frozenset[int] = Field(default_factory=frozenset)
    cherry_picked_queries: frozenset[int] = Field(default_factory=frozenset)

    # Engine
    engine: EngineType = EngineType.SPARK
    jdbc_url: str = DEFAULT_JDBC_URL
    spark_conf: dict[str, str] = Field(
        default_factory=dict,
        description="Extra session settings applied after the fixed benchmark settings",
    )

    # Output
    output_dir: str = DEFAULT_OUTPUT_DIR

    @field_validator("format", "user_defined_db_name")
    @classmethod
    def blank_is_unset(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("benchmark_path")
    @classmethod
    def path_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("benchmark_path must not be empty")
        return v.rstrip("/")

    @field_validator("scale_in_gb", "iterations", "query_offset", "query_limit", mode="before")
    @classmethod
    def whole_number(cls, v: Any) -> int:
        return parse_int(v)

    @field_validator("skipped_queries", "cherry_picked_queries", mode="before")
    @classmethod
    def split_query_list(cls, v: Any) -> frozenset[int]:
        return parse_query_list(v)

    @field_validator("spark_conf", mode="before")
    @classmethod
    def stringify_conf_values(cls, v: Any) -> Any:
        """YAML turns ``true`` and ``7200`` into bool/int; Spark wants strings."""
        if isinstance(v, dict):
            return {
                str(k): str(val).lower() if isinstance(val, bool) else str(val)
                for k, val in v.items()
            }
        return v

    # -------------------------------------------------------------------------
    # Derived names
    # -------------------------------------------------------------------------

    @property
    def format_name(self) -> str:
        if self.format is None:
            raise ValueError("format must be specified")
        return self.format

    @property
    def db_name(self) -> str:
        if self.user_defined_db_name:
            return self.user_defined_db_name
        return f"tpcds_sf{self.scale_in_gb}_{self.format_name}"

    @property
    def db_location(self) -> str:
        return f"{self.benchmark_path}/databases/{self.db_name}"

    @property
    def cherry_pick_mode(self) -> bool:
        return bool(self.cherry_picked_queries)

    def to_specs(self) -> dict[str, Any]:
        """Flat, JSON-friendly snapshot of the settings for reports."""
        data = self.model_dump(mode="json")
        data["skipped_queries"] = sorted(self.skipped_queries)
        data["cherry_picked_queries"] = sorted(self.cherry_picked_queries)
        data["db_name"] = self.db_name
        data["db_location"] = self.db_location
        return data
