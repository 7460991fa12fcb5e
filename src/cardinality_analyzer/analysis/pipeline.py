"""
One analysis cycle across all tenants.
"""

from __future__ import annotations

import structlog

from cardinality_analyzer.alerts.models import AlertSet
from cardinality_analyzer.analysis.classifier import UsageClassifier
from cardinality_analyzer.analysis.models import CycleReport, UsageRecord
from cardinality_analyzer.analysis.probes import (
    AlertRuleFetcher,
    CardinalityProbe,
    DashboardUsageProbe,
    TenantDiscovery,
)
from cardinality_analyzer.external.base import DashboardUsageArtifact
from cardinality_analyzer.logging import bind_context
from cardinality_analyzer.metrics.publisher import MetricPublisher
from cardinality_analyzer.metrics.registry import AnalyzerMetrics

logger = structlog.get_logger()


class AnalysisPipeline:
    """
    Runs the cycle: tenants, dashboard snapshot and alert rules first, then
    each tenant in listing order. With alert correlation disabled Grafana is
    not queried at all.

    Exceptions from the three global steps propagate to the caller. Any
    exception while handling a single tenant is logged and counted, nothing
    is published for that tenant, and the next tenant is processed.
    """

    def __init__(
        self,
        *,
        discovery: TenantDiscovery,
        dashboard_probe: DashboardUsageProbe,
        alert_fetcher: AlertRuleFetcher,
        cardinality_probe: CardinalityProbe,
        classifier: UsageClassifier,
        publisher: MetricPublisher,
        metrics: AnalyzerMetrics,
    ) -> None:
        self.discovery = discovery
        self.dashboard_probe = dashboard_probe
        self.alert_fetcher = alert_fetcher
        self.cardinality_probe = cardinality_probe
        self.classifier = classifier
        self.publisher = publisher
        self.metrics = metrics

    async def run_cycle(self) -> CycleReport:
        tenants = await self.discovery.discover()
        logger.info("analysis_cycle_started", tenants=len(tenants))

        artifact = await self.dashboard_probe.snapshot()
        if self.classifier.alert_correlation:
            alert_set = await self.alert_fetcher.fetch()
        else:
            alert_set = AlertSet()

        report = CycleReport(tenants=list(tenants))
        for tenant in tenants:
            try:
                records = await self.process_tenant(tenant, artifact, alert_set)
            except Exception as exc:
                logger.error(
                    "tenant_analysis_failed",
                    tenant=tenant,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                self.metrics.record_tenant_error(tenant)
                report.failed.append(tenant)
                continue
            report.processed.append(tenant)
            report.records.extend(records)

        logger.info("analysis_cycle_completed", **report.to_dict())
        return report

    async def process_tenant(
        self,
        tenant: str,
        artifact: DashboardUsageArtifact,
        alert_set: AlertSet,
    ) -> list[UsageRecord]:
        log = bind_context(tenant=tenant)
        log.info("analyzing_tenant")

        cardinality = await self.cardinality_probe.probe(tenant, artifact)
        if self.classifier.alert_correlation:
            alert_set = await self.alert_fetcher.with_datasources(alert_set)
        records = self.classifier.classify(
            tenant,
            cardinality.top_metrics.names,
            cardinality.dashboard_usage.metrics,
            alert_set,
        )
        self.publisher.publish_records(records)

        log.info(
            "tenant_analyzed",
            metrics=len(records),
            in_use=sum(1 for r in records if r.in_use),
        )
        return records
