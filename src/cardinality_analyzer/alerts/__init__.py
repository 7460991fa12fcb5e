"""
Grafana alert rules and metric correlation.
"""

from cardinality_analyzer.alerts.correlator import AlertCorrelator
from cardinality_analyzer.alerts.matcher import MetricMatcher
from cardinality_analyzer.alerts.models import (
    Alert,
    AlertRuleQuery,
    AlertSet,
    Datasource,
    filter_alert_rules,
)

__all__ = [
    "Alert",
    "AlertCorrelator",
    "AlertRuleQuery",
    "AlertSet",
    "Datasource",
    "MetricMatcher",
    "filter_alert_rules",
]
