"""Shared constants for tpcdsbench."""

# Unified output directory -- single top-level directory for all tpcdsbench outputs.
# Contains:
#   runs/      -- per-run subdirectories with report.json
DEFAULT_OUTPUT_DIR = "./tpcdsbench-output"

# Name under which the sum of per-query medians is reported
RESULT_METRIC_NAME = "tpcds-result-seconds"

# Results whose name does not start with this prefix are not TPC-DS queries
QUERY_NAME_PREFIX = "q"

# Scale (GB) at or below which the 3 TB catalog tier is used
TIER_A_MAX_SCALE_GB = 3000

# Session settings applied before any query runs
EXTRA_CONFS: dict[str, str] = {
    "spark.sql.broadcastTimeout": "7200",
    "spark.sql.crossJoin.enabled": "true",
}

DEFAULT_JDBC_URL = "jdbc:hive2://localhost:10000"
