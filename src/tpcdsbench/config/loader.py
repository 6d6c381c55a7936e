"""Configuration loader for tpcdsbench.

Settings are layered: values from an optional YAML file first, then
command-line flags on top. Command-line values are passed through as the
raw strings the user typed so that integer and list conversion errors are
reported against the flag that carried them.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import BenchmarkConfig

# Config field -> command-line flag, used for error messages
OPTION_FLAGS: dict[str, str] = {
    "format": "--format",
    "scale_in_gb": "--scale-in-gb",
    "benchmark_path": "--benchmark-path",
    "user_defined_db_name": "--db-name",
    "iterations": "--iterations",
    "query_offset": "--queryOffset",
    "query_limit": "--queryLimit",
    "skipped_queries": "--skippedQueries",
    "cherry_picked_queries": "--cherryPickedQueries",
    "engine": "--engine",
    "jdbc_url": "--jdbc-url",
    "output_dir": "--output-dir",
}

REQUIRED_OPTIONS = ("format", "scale_in_gb", "benchmark_path")


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when configuration file is not found."""

    pass


class ConfigParseError(ConfigError):
    """Raised when configuration file cannot be parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dictionary.

    Args:
        path: Path to YAML file

    Returns:
        Dictionary containing parsed YAML

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}")  # noqa: B904

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigParseError(f"Expected a mapping at the top level of {path}")
    return content


def _describe(field: str) -> str:
    flag = OPTION_FLAGS.get(field)
    return f"{flag} ({field})" if flag else field


def _is_unset(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_config(data: Mapping[str, Any]) -> BenchmarkConfig:
    """Validate a merged settings dict into a BenchmarkConfig.

    Raises:
        ConfigValidationError: If required options are missing or a value
            fails validation. Nothing is returned on failure.
    """
    missing = [name for name in REQUIRED_OPTIONS if _is_unset(data.get(name))]
    if missing:
        raise ConfigValidationError(
            "Missing required option(s): " + ", ".join(OPTION_FLAGS[m] for m in missing),
            errors=[
                {"loc": (name,), "msg": "Field required", "type": "missing"} for name in missing
            ],
        )

    try:
        return BenchmarkConfig.model_validate(dict(data))
    except ValidationError as e:
        errors = e.errors()
        error_messages = []
        for err in errors:
            field = str(err["loc"][0]) if err["loc"] else ""
            loc = ".".join(str(x) for x in err["loc"][1:])
            where = _describe(field) + (f".{loc}" if loc else "")
            value = err.get("input")
            shown = f" (got {value!r})" if isinstance(value, (str, int)) else ""
            error_messages.append(f"  - {where}: {err['msg']}{shown}")

        raise ConfigValidationError(  # noqa: B904
            "Configuration validation failed:\n" + "\n".join(error_messages),
            errors=[dict(e) for e in errors],  # type: ignore[call-overload]
        )


def parse_options(
    options: Mapping[str, str | None],
    base: Mapping[str, Any] | None = None,
) -> BenchmarkConfig:
    """Build a BenchmarkConfig from command-line option values.

    Args:
        options: Field name -> raw string value. ``None`` means the flag was
            not given, so the value from ``base`` (or the default) applies.
        base: Settings loaded from a config file, if any.

    Returns:
        Validated BenchmarkConfig

    Raises:
        ConfigValidationError: If a required option is missing or a value
            does not parse.
    """
    data: dict[str, Any] = dict(base or {})
    for name, value in options.items():
        if value is not None:
            data[name] = value
    return validate_config(data)


def load_config(
    path: str | Path,
    overrides: Mapping[str, str | None] | None = None,
) -> BenchmarkConfig:
    """Load configuration from a YAML file, with optional flag overrides.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    data = load_yaml(Path(path))
    return parse_options(overrides or {}, base=data)


def generate_example_config_yaml(
    scale_in_gb: int = 1000,
    file_format: str = "parquet",
    benchmark_path: str = "s3://my-bucket/tpcds",
) -> str:
    """Generate example configuration YAML with comments.

    Only the required fields are uncommented; everything else is shown with
    its default so users can discover and enable it.
    """
    return f"""# tpcdsbench configuration
# ========================
# Command-line flags override any value set here.

# REQUIRED: Spark's short name for the table file format
format: {file_format}

# REQUIRED: dataset scale in GB (<= 3000 uses the 3 TB query set, above uses 10 TB)
scale_in_gb: {scale_in_gb}

# REQUIRED: cloud path used for table locations and reports
benchmark_path: {benchmark_path}

# Database to query (default: tpcds_sf<scale_in_gb>_<format>)
# user_defined_db_name: my_tpcds_db

# Number of times to run each query; the lower median is reported
# iterations: 3

## Query selection
# query_offset: 1
# query_limit: 100000
# skipped_queries: [14, 23]
# cherry_picked_queries: []     # non-empty runs only these, ignoring offset/limit/skip

## Engine
# engine: spark                 # spark | spark-thrift
# jdbc_url: jdbc:hive2://localhost:10000
# spark_conf:
#   spark.sql.adaptive.enabled: "true"

## Output
# output_dir: ./tpcdsbench-output
"""
