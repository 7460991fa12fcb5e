"""
Command line entry point.

Usage:
    mimir-cardinality-analyzer --config config.yaml [--output-dir DIR]
        [--interval SECONDS] [--disable-alert-correlation]

Starts the HTTP server (/alive, /metrics) and the analysis loop in one event
loop. SIGINT/SIGTERM stop the server and cancel any in-flight cycle.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import sys
from pathlib import Path
from typing import Sequence

import structlog

from cardinality_analyzer import __version__
from cardinality_analyzer.alerts.correlator import AlertCorrelator
from cardinality_analyzer.analysis.classifier import UsageClassifier
from cardinality_analyzer.analysis.pipeline import AnalysisPipeline
from cardinality_analyzer.analysis.probes import (
    AlertRuleFetcher,
    CardinalityProbe,
    DashboardUsageProbe,
    TenantDiscovery,
)
from cardinality_analyzer.analysis.scheduler import Scheduler
from cardinality_analyzer.api.main import create_app, create_server
from cardinality_analyzer.config import AnalyzerConfig, Settings, get_settings, load_config
from cardinality_analyzer.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from cardinality_analyzer.external.mimirtool import MimirtoolAnalyzer
from cardinality_analyzer.logging import configure_logging
from cardinality_analyzer.metrics.publisher import MetricPublisher
from cardinality_analyzer.metrics.registry import AnalyzerMetrics
from cardinality_analyzer.providers.grafana import GrafanaProvider
from cardinality_analyzer.providers.mimir import MimirProvider

logger = structlog.get_logger()


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value}")
    return number


def build_parser(settings: Settings | None = None) -> argparse.ArgumentParser:
    settings = settings or get_settings()
    parser = argparse.ArgumentParser(
        prog="mimir-cardinality-analyzer",
        description="Export which high-cardinality Mimir metrics are used by Grafana",
    )
    parser.add_argument("-c", "--config", required=True, type=Path, help="Config file")
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Output directory for intermediate files (grafana.json, prometheus-metrics.json)",
    )
    parser.add_argument(
        "--interval",
        type=_positive_float,
        default=settings.default_interval_seconds,
        help="Seconds between successful analysis cycles (default: %(default)s)",
    )
    parser.add_argument(
        "--disable-alert-correlation",
        action="store_true",
        help="Classify by dashboard usage only",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (default: %(default)s)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_pipeline(
    config: AnalyzerConfig,
    settings: Settings,
    metrics: AnalyzerMetrics,
    *,
    alert_correlation: bool = True,
) -> AnalysisPipeline:
    """Wire every analysis component against one shared metrics registry."""
    grafana = GrafanaProvider(
        config.grafana.url,
        config.grafana.token,
        insecure=config.grafana.insecure,
        timeout=settings.http_timeout,
        metrics=metrics,
    )
    mimir = MimirProvider(
        config.mimir.store_gateway_url,
        config.mimir.querier_url,
        timeout=settings.http_timeout,
        metrics=metrics,
    )
    analyzer = MimirtoolAnalyzer(
        grafana_url=config.grafana.url,
        grafana_token=config.grafana.token,
        querier_url=config.mimir.querier_url,
        output_dir=config.output_dir,
        binary=settings.mimirtool_path,
        timeout=settings.external_timeout,
        metrics=metrics,
    )

    return AnalysisPipeline(
        discovery=TenantDiscovery(mimir, metrics),
        dashboard_probe=DashboardUsageProbe(analyzer),
        alert_fetcher=AlertRuleFetcher(grafana),
        cardinality_probe=CardinalityProbe(analyzer, mimir, limit=settings.top_metrics_limit),
        classifier=UsageClassifier(AlertCorrelator(), alert_correlation=alert_correlation),
        publisher=MetricPublisher(metrics),
        metrics=metrics,
    )


async def run(
    config: AnalyzerConfig,
    settings: Settings,
    *,
    interval: float,
    alert_correlation: bool = True,
    log_level: str = "INFO",
) -> None:
    metrics = AnalyzerMetrics()
    pipeline = build_pipeline(config, settings, metrics, alert_correlation=alert_correlation)
    scheduler = Scheduler(
        pipeline,
        metrics,
        interval=interval,
        failure_backoff=settings.failure_backoff_seconds,
    )
    server = create_server(create_app(metrics), config.http, log_level)

    logger.info(
        "starting_exporter",
        version=__version__,
        host=config.http.host,
        port=config.http.port,
        output_dir=str(config.output_dir),
        alert_correlation=alert_correlation,
    )
    analysis = asyncio.create_task(scheduler.run(), name="analysis")
    try:
        await server.serve()
    finally:
        logger.info("shutting_down")
        analysis.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await analysis


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()
    args = build_parser(settings).parse_args(argv)
    configure_logging(args.log_level)

    config = load_config(args.config).with_output_dir(args.output_dir)
    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot create output directory: {exc}",
            details={"output_dir": str(config.output_dir)},
        ) from exc

    asyncio.run(
        run(
            config,
            settings,
            interval=args.interval,
            alert_correlation=not args.disable_alert_correlation,
            log_level=args.log_level,
        )
    )
    return ExitCode.SUCCESS


def cli() -> None:
    sys.exit(main())
