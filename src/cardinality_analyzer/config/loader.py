"""
Configuration file loading.

Unlike a best-effort loader, a missing or unparsable file is fatal: the
process must not start without a valid configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import structlog
import yaml

from cardinality_analyzer.config.models import AnalyzerConfig
from cardinality_analyzer.core.errors import ConfigurationError

logger = structlog.get_logger()


def load_config(
    path: str | Path,
    environ: Mapping[str, str] | None = None,
) -> AnalyzerConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the config file
        environ: Environment used to resolve ``grafana.tokenFrom``
            (defaults to ``os.environ``)

    Returns:
        AnalyzerConfig instance

    Raises:
        ConfigurationError: If the file is missing, unparsable or incomplete
    """
    config_path = Path(path)
    logger.info("loading_config", path=str(config_path))

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read config file: {e}", details={"path": str(config_path)}
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in config file: {e}", details={"path": str(config_path)}
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            "Config file must contain a mapping", details={"path": str(config_path)}
        )

    config = AnalyzerConfig.from_dict(data, environ)
    logger.debug(
        "loaded_config",
        path=str(config_path),
        grafana_url=config.grafana.url,
        store_gateway_url=config.mimir.store_gateway_url,
        querier_url=config.mimir.querier_url,
    )
    return config
