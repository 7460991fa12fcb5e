"""
mimirtool integration.

Runs ``mimirtool analyze grafana`` and ``mimirtool analyze prometheus`` and
reads their JSON output files.

Installation:
    Download from https://github.com/grafana/mimir/releases
    (or ``docker pull grafana/mimirtool``)
"""

from __future__ import annotations

import asyncio
import json
from contextlib import nullcontext
from pathlib import Path
from typing import Any

import structlog

from cardinality_analyzer.core.errors import ExternalToolError
from cardinality_analyzer.external.base import DashboardUsageArtifact, TenantDashboardUsage
from cardinality_analyzer.metrics.registry import AnalyzerMetrics, Command, Status

logger = structlog.get_logger()

GRAFANA_OUTPUT = "grafana.json"
PROMETHEUS_OUTPUT = "prometheus-metrics.json"


class MimirtoolAnalyzer:
    """
    DashboardAnalyzer backed by the mimirtool binary.

    Both commands write into ``output_dir``; the tenant command reads the
    grafana artifact back as input. Tenants are analyzed one at a time, so
    the single prometheus output file is overwritten per tenant.
    """

    def __init__(
        self,
        *,
        grafana_url: str,
        grafana_token: str,
        querier_url: str,
        output_dir: Path,
        binary: str = "mimirtool",
        timeout: float | None = None,
        metrics: AnalyzerMetrics | None = None,
    ) -> None:
        self._grafana_url = grafana_url
        self._grafana_token = grafana_token
        self._querier_url = querier_url
        self._output_dir = Path(output_dir)
        self._binary = binary
        self._timeout = timeout
        self._metrics = metrics

    @property
    def grafana_output(self) -> Path:
        return self._output_dir / GRAFANA_OUTPUT

    @property
    def prometheus_output(self) -> Path:
        return self._output_dir / PROMETHEUS_OUTPUT

    async def analyze_dashboards(self) -> DashboardUsageArtifact:
        """
        Analyze metric usage across all Grafana dashboards.

        Raises:
            ExternalToolError: If mimirtool fails or its output is unreadable
        """
        logger.info("analyzing_dashboards", output=str(self.grafana_output))
        output = self.grafana_output
        args = [
            "analyze",
            "grafana",
            "--address",
            self._grafana_url,
            "--key",
            self._grafana_token,
            "--output",
            str(output),
        ]

        with self._timer(Command.ANALYZE_GRAFANA):
            try:
                self._discard(output)
                await self._run(Command.ANALYZE_GRAFANA, args)
                data = self._read_json(output)
            except ExternalToolError:
                self._record(Command.ANALYZE_GRAFANA, Status.FAILURE)
                raise

        used = data.get("metricsUsed") if isinstance(data, dict) else None
        metrics = frozenset(m for m in used or [] if isinstance(m, str))
        self._record(Command.ANALYZE_GRAFANA, Status.SUCCESS)
        logger.info("analyzed_dashboards", metrics=len(metrics))
        return DashboardUsageArtifact(path=output, metrics=metrics)

    async def analyze_tenant_cardinality(
        self,
        tenant: str,
        artifact: DashboardUsageArtifact,
    ) -> TenantDashboardUsage:
        """
        Analyze which of a tenant's metrics are used by dashboards.

        Raises:
            ExternalToolError: If mimirtool fails or ``in_use_metric_counts``
                is missing from its output
        """
        logger.info("analyzing_tenant_cardinality", tenant=tenant)
        output = self.prometheus_output
        args = [
            "analyze",
            "prometheus",
            "--address",
            self._querier_url,
            "--id",
            tenant,
            "--prometheus-http-prefix",
            "prometheus",
            "--grafana-metrics-file",
            str(artifact.path),
            "--output",
            str(output),
        ]

        with self._timer(Command.ANALYZE_PROMETHEUS):
            try:
                self._discard(output)
                await self._run(Command.ANALYZE_PROMETHEUS, args)
                data = self._read_json(output)
                metrics = _in_use_metrics(data, output)
            except ExternalToolError:
                self._record(Command.ANALYZE_PROMETHEUS, Status.FAILURE)
                raise

        self._record(Command.ANALYZE_PROMETHEUS, Status.SUCCESS)
        return TenantDashboardUsage(tenant=tenant, metrics=metrics)

    async def _run(self, command: Command, args: list[str]) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ExternalToolError(
                f"Failed to execute {self._binary}: {exc}",
                details={"command": command.value},
            ) from exc

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise ExternalToolError(
                f"{self._binary} timed out after {self._timeout} seconds",
                details={"command": command.value},
            ) from exc

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            raise ExternalToolError(
                f"Mimirtool command failed: {message}",
                details={"command": command.value, "returncode": proc.returncode},
            )

    @staticmethod
    def _discard(path: Path) -> None:
        """Remove a previous run's output so a run that writes nothing is not misread."""
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise ExternalToolError(
                f"Cannot remove stale analyzer output: {exc}", details={"path": str(path)}
            ) from exc

    @staticmethod
    def _read_json(path: Path) -> Any:
        try:
            with open(path) as f:
                return json.load(f)
        except OSError as exc:
            raise ExternalToolError(
                f"Cannot read analyzer output: {exc}", details={"path": str(path)}
            ) from exc
        except json.JSONDecodeError as exc:
            raise ExternalToolError(
                f"Invalid JSON in analyzer output: {exc}", details={"path": str(path)}
            ) from exc

    def _timer(self, command: Command):
        if self._metrics is None:
            return nullcontext()
        return self._metrics.mimirtool_timer(command)

    def _record(self, command: Command, status: Status) -> None:
        if self._metrics is not None:
            self._metrics.record_mimirtool_execution(command, status)


def _in_use_metrics(data: Any, path: Path) -> frozenset[str]:
    counts = data.get("in_use_metric_counts") if isinstance(data, dict) else None
    if not isinstance(counts, list):
        raise ExternalToolError(
            "in_use_metric_counts field not found or not an array",
            details={"path": str(path)},
        )
    return frozenset(
        entry["metric"]
        for entry in counts
        if isinstance(entry, dict) and isinstance(entry.get("metric"), str)
    )
