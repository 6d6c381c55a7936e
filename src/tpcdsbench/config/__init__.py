"""tpcdsbench configuration module."""

from .loader import (
    OPTION_FLAGS,
    REQUIRED_OPTIONS,
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    generate_example_config_yaml,
    load_config,
    load_yaml,
    parse_options,
    validate_config,
)
from .schema import BenchmarkConfig, EngineType, parse_query_list

__all__ = [
    # Config classes
    "BenchmarkConfig",
    "EngineType",
    # Loader functions
    "load_config",
    "load_yaml",
    "parse_options",
    "validate_config",
    "generate_example_config_yaml",
    "OPTION_FLAGS",
    "REQUIRED_OPTIONS",
    # Helpers
    "parse_query_list",
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
