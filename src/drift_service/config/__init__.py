"""Configuration loading for drift analysis runs."""

from .loader import (
    AnalysisConfig,
    ConfigError,
    ConfigLoader,
    dump_config,
    generate_gke_config,
    generate_sql_config,
)

__all__ = [
    "AnalysisConfig",
    "ConfigError",
    "ConfigLoader",
    "dump_config",
    "generate_gke_config",
    "generate_sql_config",
]
