"""
Metric usage classification.
"""

from __future__ import annotations

from typing import Collection, Iterable

import structlog

from cardinality_analyzer.alerts.correlator import AlertCorrelator
from cardinality_analyzer.alerts.models import AlertSet
from cardinality_analyzer.analysis.models import UsageReason, UsageRecord

logger = structlog.get_logger()


class UsageClassifier:
    """
    Decides whether each of a tenant's top metrics is in use.

    ``in_use = in_dashboards or (alert_correlation and referenced_by_alert)``

    Dashboard usage is checked first and is sufficient on its own. With
    alert correlation disabled the alert set is never looked at.
    """

    def __init__(
        self,
        correlator: AlertCorrelator | None = None,
        *,
        alert_correlation: bool = True,
    ) -> None:
        self._correlator = correlator or AlertCorrelator()
        self.alert_correlation = alert_correlation

    def classify_metric(
        self,
        tenant: str,
        metric: str,
        dashboard_usage: Collection[str],
        alert_set: AlertSet,
    ) -> UsageRecord:
        if metric in dashboard_usage:
            return UsageRecord(tenant, metric, True, UsageReason.DASHBOARD)

        if self.alert_correlation:
            alert = self._correlator.find(
                metric, tenant, alert_set.alerts, alert_set.datasources
            )
            if alert is not None:
                return UsageRecord(tenant, metric, True, UsageReason.ALERT, alert.uid)

        return UsageRecord(tenant, metric, False, UsageReason.UNUSED)

    def classify(
        self,
        tenant: str,
        metrics: Iterable[str],
        dashboard_usage: Collection[str],
        alert_set: AlertSet,
    ) -> list[UsageRecord]:
        records = []
        for metric in metrics:
            record = self.classify_metric(tenant, metric, dashboard_usage, alert_set)
            logger.info(
                "metric_classified",
                tenant=tenant,
                metric=metric,
                in_use=record.in_use,
                reason=record.reason.value,
            )
            records.append(record)
        return records
