"""
Metrics registry for the analyzer.

A single AnalyzerMetrics instance is created at startup and passed to every
component that records observability data. It owns its own CollectorRegistry
so tests can build isolated instances side by side.
"""

from __future__ import annotations

import time
from enum import StrEnum

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    ProcessCollector,
    generate_latest,
)

from cardinality_analyzer import __version__


class Status(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"


class Target(StrEnum):
    """Upstream HTTP services."""

    STORE_GATEWAY = "store-gateway"
    QUERIER = "querier"
    GRAFANA = "grafana"


class Command(StrEnum):
    """External analyzer subcommands."""

    ANALYZE_GRAFANA = "analyze_grafana"
    ANALYZE_PROMETHEUS = "analyze_prometheus"


class AnalyzerMetrics:
    """All series exported by the analyzer process."""

    CONTENT_TYPE = CONTENT_TYPE_LATEST

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        *,
        process_collector: bool = True,
    ) -> None:
        self.registry = registry or CollectorRegistry()

        # Analysis
        self.metric_active = Gauge(
            "metric_active",
            "Tracks whether a given metric is active (1) or inactive (0)",
            ["metric", "tenant"],
            registry=self.registry,
        )
        self.tenants_discovered = Gauge(
            "tenants_discovered_total",
            "Total number of tenants discovered during tenant discovery",
            registry=self.registry,
        )
        self.analysis_cycles = Counter(
            "analysis_cycles",
            "Total number of analysis cycles",
            ["status"],
            registry=self.registry,
        )
        self.analysis_errors = Counter(
            "analysis_errors",
            "Total number of analysis errors",
            ["task", "tenant"],
            registry=self.registry,
        )
        self.last_successful_analysis = Gauge(
            "last_successful_analysis_timestamp",
            "Timestamp of the last successful analysis cycle",
            registry=self.registry,
        )

        # External calls
        self.external_request_failures = Counter(
            "external_request_failures",
            "Total number of failed external requests",
            ["target"],
            registry=self.registry,
        )
        self.external_request_duration = Histogram(
            "external_request_duration_seconds",
            "Duration of external requests in seconds",
            ["target"],
            registry=self.registry,
        )
        self.mimirtool_executions = Counter(
            "mimirtool_executions",
            "Total number of executions of mimirtool",
            ["command", "status"],
            registry=self.registry,
        )
        self.mimirtool_duration = Histogram(
            "mimirtool_duration_seconds",
            "Duration of mimirtool executions in seconds",
            ["command"],
            buckets=(1, 5, 10, 30, 60, 120, 300, 600, 1200),
            registry=self.registry,
        )

        # HTTP server
        self.http_requests = Counter(
            "http_requests",
            "Total number of HTTP requests per endpoint",
            ["endpoint"],
            registry=self.registry,
        )
        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds per endpoint",
            ["endpoint"],
            registry=self.registry,
        )

        # Process
        self.build_info = Gauge(
            "build_info",
            "Build information of the application, labeled by version",
            ["version"],
            registry=self.registry,
        )
        self.build_info.labels(version=__version__).set(1)
        if process_collector:
            ProcessCollector(registry=self.registry)

    def set_metric_active(self, metric: str, tenant: str, active: bool) -> None:
        self.metric_active.labels(metric=metric, tenant=tenant).set(1 if active else 0)

    def record_tenants_discovered(self, count: int) -> None:
        self.tenants_discovered.set(count)

    def record_analysis_cycle(self, status: Status) -> None:
        self.analysis_cycles.labels(status=status.value).inc()

    def record_cycle_error(self) -> None:
        self.analysis_errors.labels(task="cycle", tenant="").inc()

    def record_tenant_error(self, tenant: str) -> None:
        self.analysis_errors.labels(task="tenant", tenant=tenant).inc()

    def record_successful_analysis(self, timestamp: float | None = None) -> None:
        self.last_successful_analysis.set(time.time() if timestamp is None else timestamp)

    def record_external_request_failure(self, target: Target) -> None:
        self.external_request_failures.labels(target=target.value).inc()

    def external_request_timer(self, target: Target):
        """Context manager observing the duration of one upstream request."""
        return self.external_request_duration.labels(target=target.value).time()

    def record_mimirtool_execution(self, command: Command, status: Status) -> None:
        self.mimirtool_executions.labels(command=command.value, status=status.value).inc()

    def mimirtool_timer(self, command: Command):
        return self.mimirtool_duration.labels(command=command.value).time()

    def record_http_request(self, endpoint: str, duration: float) -> None:
        self.http_requests.labels(endpoint=endpoint).inc()
        self.http_request_duration.labels(endpoint=endpoint).observe(duration)

    def render(self) -> bytes:
        """Render all registered series in the Prometheus text format."""
        return generate_latest(self.registry)
