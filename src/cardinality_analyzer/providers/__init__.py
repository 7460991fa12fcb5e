from cardinality_analyzer.providers.grafana import GrafanaProvider, GrafanaProviderError
from cardinality_analyzer.providers.mimir import MimirProvider, MimirProviderError

__all__ = [
    "GrafanaProvider",
    "GrafanaProviderError",
    "MimirProvider",
    "MimirProviderError",
]
