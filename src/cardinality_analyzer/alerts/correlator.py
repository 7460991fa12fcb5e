"""
Correlates metrics with the alert rules that reference them.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from cardinality_analyzer.alerts.matcher import MetricMatcher
from cardinality_analyzer.alerts.models import Alert, AlertRuleQuery, Datasource

logger = structlog.get_logger()


class AlertCorrelator:
    """
    Decides whether a metric is referenced by an alert bound to a tenant.

    A query counts when both hold for that same query:
    - its expression contains the metric as a token (see MetricMatcher)
    - its datasource uid resolves to a datasource whose name contains the
      tenant id (see Datasource.belongs_to)

    Alerts are scanned in listing order and the first hit wins.
    """

    def find(
        self,
        metric: str,
        tenant: str,
        alerts: Sequence[Alert],
        datasources: Sequence[Datasource],
    ) -> Alert | None:
        """Return the first alert with a query satisfying both conditions."""
        matcher = MetricMatcher(metric)
        by_uid = {ds.uid: ds for ds in datasources}

        for alert in alerts:
            for query in alert.queries:
                if self._query_matches(query, matcher, by_uid, tenant):
                    logger.debug(
                        "metric_found_in_alert",
                        metric=metric,
                        tenant=tenant,
                        alert_uid=alert.uid,
                        alert_title=alert.title,
                    )
                    return alert
        return None

    def matches(
        self,
        metric: str,
        tenant: str,
        alerts: Sequence[Alert],
        datasources: Sequence[Datasource],
    ) -> bool:
        return self.find(metric, tenant, alerts, datasources) is not None

    @staticmethod
    def _query_matches(
        query: AlertRuleQuery,
        matcher: MetricMatcher,
        datasources: dict[str, Datasource],
        tenant: str,
    ) -> bool:
        if not query.expr or not matcher.matches(query.expr):
            return False
        if query.datasource_uid is None:
            return False
        datasource = datasources.get(query.datasource_uid)
        return datasource is not None and datasource.belongs_to(tenant)
