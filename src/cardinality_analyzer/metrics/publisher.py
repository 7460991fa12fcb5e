"""
Publishes metric usage classifications as gauges.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from cardinality_analyzer.analysis.models import UsageRecord
from cardinality_analyzer.metrics.registry import AnalyzerMetrics

logger = structlog.get_logger()


class MetricPublisher:
    """
    Writes one ``metric_active{metric, tenant}`` gauge per classification.

    Series are only ever overwritten. A metric that leaves a tenant's top
    list keeps its last written value until the process exits.
    """

    def __init__(self, metrics: AnalyzerMetrics) -> None:
        self._metrics = metrics

    def publish(self, metric: str, tenant: str, in_use: bool) -> None:
        self._metrics.set_metric_active(metric, tenant, in_use)

    def publish_records(self, records: Iterable[UsageRecord]) -> int:
        count = 0
        for record in records:
            self.publish(record.metric, record.tenant, record.in_use)
            count += 1
        logger.debug("published_usage", count=count)
        return count
