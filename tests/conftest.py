"""Root test configuration."""

import logging

import pytest
import structlog

from cardinality_analyzer.alerts.models import Alert, AlertRuleQuery, AlertSet, Datasource
from cardinality_analyzer.metrics.registry import AnalyzerMetrics


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def metrics():
    """Isolated metrics registry without process collector."""
    return AnalyzerMetrics(process_collector=False)


@pytest.fixture
def gauge(metrics):
    """Read metric_active for (metric, tenant); None when never written."""

    def _gauge(metric: str, tenant: str):
        return metrics.registry.get_sample_value(
            "metric_active", {"metric": metric, "tenant": tenant}
        )

    return _gauge


@pytest.fixture
def make_alert():
    """Build an alert from (datasource_uid, expr) pairs."""
    counter = iter(range(1, 10_000))

    def _make(uid: str, *queries: tuple[str | None, str | None], title: str | None = None) -> Alert:
        return Alert(
            id=next(counter),
            uid=uid,
            title=title or f"Alert {uid}",
            queries=tuple(AlertRuleQuery(datasource_uid=ds, expr=expr) for ds, expr in queries),
        )

    return _make


@pytest.fixture
def datasources():
    return (
        Datasource(id=1, uid="ds-team-a", name="Mimir - team-a (prod)"),
        Datasource(id=2, uid="ds-team-b", name="Mimir - team-b"),
        Datasource(id=3, uid="ds-loki", name="Loki"),
    )


@pytest.fixture
def empty_alert_set():
    return AlertSet()
