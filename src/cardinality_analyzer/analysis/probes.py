"""
Data-gathering steps of an analysis cycle.

TenantDiscovery, DashboardUsageProbe and AlertRuleFetcher run once per cycle
and their failures abort the cycle. CardinalityProbe runs per tenant and its
failures only skip that tenant; that distinction is made by the pipeline,
these classes simply raise.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import structlog

from cardinality_analyzer.alerts.models import AlertSet, filter_alert_rules
from cardinality_analyzer.analysis.models import CardinalityTopList
from cardinality_analyzer.external.base import (
    DashboardAnalyzer,
    DashboardUsageArtifact,
    TenantDashboardUsage,
)
from cardinality_analyzer.metrics.registry import AnalyzerMetrics
from cardinality_analyzer.providers.grafana import GrafanaProvider
from cardinality_analyzer.providers.mimir import MimirProvider

logger = structlog.get_logger()

TOP_METRICS_LIMIT = 100


class TenantDiscovery:
    """Lists tenant ids from the store-gateway."""

    def __init__(self, mimir: MimirProvider, metrics: AnalyzerMetrics) -> None:
        self._mimir = mimir
        self._metrics = metrics

    async def discover(self) -> list[str]:
        tenants = await self._mimir.get_tenants()
        self._metrics.record_tenants_discovered(len(tenants))
        return tenants


class DashboardUsageProbe:
    """Produces the global dashboard-usage snapshot for the cycle."""

    def __init__(self, analyzer: DashboardAnalyzer) -> None:
        self._analyzer = analyzer

    async def snapshot(self) -> DashboardUsageArtifact:
        return await self._analyzer.analyze_dashboards()


class AlertRuleFetcher:
    """
    Loads provisioned alert rules and the datasources they point at.

    Rules are fetched once per cycle. Datasources are fetched per tenant, so a
    failing datasource listing only skips the tenant being processed.
    """

    def __init__(self, grafana: GrafanaProvider) -> None:
        self._grafana = grafana

    async def fetch(self) -> AlertSet:
        raw = await self._grafana.get_alert_rules()
        alerts = filter_alert_rules(raw)
        logger.info("fetched_alert_rules", alerts=len(raw), alerts_with_expressions=len(alerts))
        return AlertSet(alerts=tuple(alerts))

    async def with_datasources(self, alert_set: AlertSet) -> AlertSet:
        """Return a copy of the alert set carrying the current datasource listing."""
        datasources = await self._grafana.get_datasources()
        return replace(alert_set, datasources=tuple(datasources))


@dataclass(frozen=True)
class TenantCardinality:
    """Everything known about one tenant before classification."""

    tenant: str
    dashboard_usage: TenantDashboardUsage
    top_metrics: CardinalityTopList


class CardinalityProbe:
    """Per-tenant dashboard usage and top-cardinality metrics."""

    def __init__(
        self,
        analyzer: DashboardAnalyzer,
        mimir: MimirProvider,
        *,
        limit: int = TOP_METRICS_LIMIT,
    ) -> None:
        self._analyzer = analyzer
        self._mimir = mimir
        self._limit = limit

    async def probe(self, tenant: str, artifact: DashboardUsageArtifact) -> TenantCardinality:
        usage = await self._analyzer.analyze_tenant_cardinality(tenant, artifact)
        top = await self._mimir.get_top_metrics(tenant, limit=self._limit)
        return TenantCardinality(tenant=tenant, dashboard_usage=usage, top_metrics=top)
