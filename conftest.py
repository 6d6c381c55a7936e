"""Pytest configuration for tpcdsbench."""

# Prevent collection from source tree
collect_ignore = ["src"]


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies, fast)")
    config.addinivalue_line(
        "markers", "spark: Tests that start a local SparkSession (require pyspark and Java)"
    )
