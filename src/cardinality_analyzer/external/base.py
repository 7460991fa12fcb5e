from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class DashboardUsageArtifact:
    """Global snapshot of metrics referenced by any dashboard."""

    path: Path
    metrics: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TenantDashboardUsage:
    """Metrics the analyzer counts as in use by dashboards for one tenant."""

    tenant: str
    metrics: frozenset[str] = field(default_factory=frozenset)

    def __contains__(self, metric: object) -> bool:
        return metric in self.metrics

    def __len__(self) -> int:
        return len(self.metrics)


class DashboardAnalyzer(Protocol):
    """Contract for the external dashboard/cardinality analysis tool."""

    async def analyze_dashboards(self) -> DashboardUsageArtifact:
        ...

    async def analyze_tenant_cardinality(
        self,
        tenant: str,
        artifact: DashboardUsageArtifact,
    ) -> TenantDashboardUsage:
        ...
