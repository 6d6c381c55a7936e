"""TPC-DS benchmark driver for Spark SQL."""

__version__ = "0.3.0"
