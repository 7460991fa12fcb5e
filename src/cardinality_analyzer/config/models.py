"""
Configuration models for the analyzer.

The YAML document has three sections (grafana, mimir, http). Models are
frozen: configuration is read by both the analysis task and the HTTP server
and never changes after load.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from cardinality_analyzer.core.errors import ConfigurationError


def _require(data: Mapping[str, Any], key: str, section: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise ConfigurationError(
            f"Missing required config key '{section}.{key}'",
            details={"section": section, "key": key},
        )
    return value


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name)
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Missing config section '{name}'", details={"section": name})
    return section


@dataclass(frozen=True)
class GrafanaConfig:
    """Connection to the Grafana instance holding dashboards and alert rules."""

    url: str
    token: str = field(default="", repr=False)
    insecure: bool = False

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        environ: Mapping[str, str] | None = None,
    ) -> GrafanaConfig:
        """
        Parse the grafana section.

        The token is taken from ``token`` when present, otherwise read from
        the environment variable named by ``tokenFrom``. Neither set means an
        empty token.
        """
        environ = os.environ if environ is None else environ

        token = data.get("token")
        token_from = data.get("tokenFrom")
        if token is None and token_from:
            if token_from not in environ:
                raise ConfigurationError(
                    f"Environment variable '{token_from}' referenced by grafana.tokenFrom is not set",
                    details={"variable": token_from},
                )
            token = environ[token_from]

        return cls(
            url=str(_require(data, "url", "grafana")).rstrip("/"),
            token=token or "",
            insecure=bool(data.get("insecure") or False),
        )


@dataclass(frozen=True)
class MimirConfig:
    """Mimir endpoints used for tenant discovery and cardinality queries."""

    store_gateway_url: str
    querier_url: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MimirConfig:
        return cls(
            store_gateway_url=str(_require(data, "storeGatewayUrl", "mimir")).rstrip("/"),
            querier_url=str(_require(data, "querierUrl", "mimir")).rstrip("/"),
        )


@dataclass(frozen=True)
class HttpConfig:
    """Listener for the liveness and metrics endpoints."""

    host: str
    port: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HttpConfig:
        port = _require(data, "port", "http")
        try:
            port = int(port)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Invalid http.port '{port}'", details={"port": port}
            ) from exc
        if not 0 <= port <= 65535:
            raise ConfigurationError(f"http.port out of range: {port}", details={"port": port})
        return cls(host=str(_require(data, "host", "http")), port=port)


@dataclass(frozen=True)
class AnalyzerConfig:
    """Complete runtime configuration."""

    grafana: GrafanaConfig
    mimir: MimirConfig
    http: HttpConfig
    output_dir: Path = Path(".")

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        environ: Mapping[str, str] | None = None,
    ) -> AnalyzerConfig:
        return cls(
            grafana=GrafanaConfig.from_dict(_section(data, "grafana"), environ),
            mimir=MimirConfig.from_dict(_section(data, "mimir")),
            http=HttpConfig.from_dict(_section(data, "http")),
        )

    def with_output_dir(self, output_dir: str | Path) -> AnalyzerConfig:
        """Return a copy with the directory for intermediate files set."""
        return replace(self, output_dir=Path(output_dir))
