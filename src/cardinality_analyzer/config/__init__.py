"""
Analyzer configuration.

- YAML config document (grafana, mimir, http sections)
- Pydantic-based settings from CARDINALITY_ANALYZER_ environment variables
"""

from cardinality_analyzer.config.loader import load_config
from cardinality_analyzer.config.models import (
    AnalyzerConfig,
    GrafanaConfig,
    HttpConfig,
    MimirConfig,
)
from cardinality_analyzer.config.settings import Settings, get_settings

__all__ = [
    "AnalyzerConfig",
    "GrafanaConfig",
    "HttpConfig",
    "MimirConfig",
    "Settings",
    "get_settings",
    "load_config",
]
