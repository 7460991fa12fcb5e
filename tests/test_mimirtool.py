"""
Tests for the mimirtool-backed dashboard analyzer.

A small executable script stands in for the mimirtool binary. It records its
arguments and writes the output file named by ``--output``.
"""

import json
import stat
import sys
import textwrap

import pytest

from cardinality_analyzer.core.errors import ExternalToolError
from cardinality_analyzer.external.base import DashboardUsageArtifact
from cardinality_analyzer.external.mimirtool import (
    GRAFANA_OUTPUT,
    PROMETHEUS_OUTPUT,
    MimirtoolAnalyzer,
)


@pytest.fixture
def fake_mimirtool(tmp_path):
    """Write a fake mimirtool that emits the given documents."""

    def _write(grafana=None, prometheus=None, exit_code=0, stderr=""):
        script = tmp_path / "mimirtool"
        calls_path = tmp_path / "calls.jsonl"
        script.write_text(
            textwrap.dedent(
                f"""\
                #!{sys.executable}
                import json, sys
                args = sys.argv[1:]
                with open({str(calls_path)!r}, "a") as f:
                    f.write(json.dumps(args) + "\\n")
                if {exit_code!r}:
                    sys.stderr.write({stderr!r})
                    sys.exit({exit_code!r})
                output = args[args.index("--output") + 1]
                doc = {grafana!r} if args[1] == "grafana" else {prometheus!r}
                if doc is not None:
                    with open(output, "w") as f:
                        f.write(doc)
                """
            )
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR)
        return str(script)

    return _write


@pytest.fixture
def calls(tmp_path):
    def _calls():
        path = tmp_path / "calls.jsonl"
        return [json.loads(line) for line in path.read_text().splitlines()]

    return _calls


def make_analyzer(binary, output_dir, **kwargs):
    return MimirtoolAnalyzer(
        grafana_url="https://grafana.example.com",
        grafana_token="secret",
        querier_url="http://querier:8080",
        output_dir=output_dir,
        binary=binary,
        **kwargs,
    )


class TestAnalyzeDashboards:
    @pytest.mark.asyncio
    async def test_runs_grafana_analysis(self, tmp_path, fake_mimirtool, calls, metrics):
        grafana_doc = json.dumps({"metricsUsed": ["up", "http_requests_total"], "dashboards": []})
        binary = fake_mimirtool(grafana=grafana_doc)
        analyzer = make_analyzer(binary, tmp_path, metrics=metrics)

        artifact = await analyzer.analyze_dashboards()

        assert artifact.path == tmp_path / GRAFANA_OUTPUT
        assert artifact.metrics == frozenset({"up", "http_requests_total"})
        assert calls() == [
            [
                "analyze",
                "grafana",
                "--address",
                "https://grafana.example.com",
                "--key",
                "secret",
                "--output",
                str(tmp_path / GRAFANA_OUTPUT),
            ]
        ]
        assert (
            metrics.registry.get_sample_value(
                "mimirtool_executions_total",
                {"command": "analyze_grafana", "status": "success"},
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_missing_metrics_used(self, tmp_path, fake_mimirtool):
        binary = fake_mimirtool(grafana=json.dumps({"dashboards": []}))

        artifact = await make_analyzer(binary, tmp_path).analyze_dashboards()

        assert artifact.metrics == frozenset()

    @pytest.mark.asyncio
    async def test_nonzero_exit_carries_stderr(self, tmp_path, fake_mimirtool, metrics):
        binary = fake_mimirtool(exit_code=1, stderr="  invalid API key\n")
        analyzer = make_analyzer(binary, tmp_path, metrics=metrics)

        with pytest.raises(ExternalToolError) as exc_info:
            await analyzer.analyze_dashboards()

        assert str(exc_info.value) == "Mimirtool command failed: invalid API key"
        assert exc_info.value.details["returncode"] == 1
        assert (
            metrics.registry.get_sample_value(
                "mimirtool_executions_total",
                {"command": "analyze_grafana", "status": "failure"},
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_missing_binary(self, tmp_path):
        analyzer = make_analyzer(str(tmp_path / "does-not-exist"), tmp_path)

        with pytest.raises(ExternalToolError, match="Failed to execute"):
            await analyzer.analyze_dashboards()

    @pytest.mark.asyncio
    async def test_output_not_written(self, tmp_path, fake_mimirtool):
        binary = fake_mimirtool(grafana=None)

        with pytest.raises(ExternalToolError, match="Cannot read analyzer output"):
            await make_analyzer(binary, tmp_path).analyze_dashboards()

    @pytest.mark.asyncio
    async def test_invalid_json_output(self, tmp_path, fake_mimirtool):
        binary = fake_mimirtool(grafana="{not json")

        with pytest.raises(ExternalToolError, match="Invalid JSON"):
            await make_analyzer(binary, tmp_path).analyze_dashboards()

    @pytest.mark.asyncio
    async def test_stale_dashboard_output_removed(self, tmp_path, fake_mimirtool):
        (tmp_path / GRAFANA_OUTPUT).write_text(json.dumps({"metricsUsed": ["up"]}))
        binary = fake_mimirtool(grafana=None)

        with pytest.raises(ExternalToolError, match="Cannot read analyzer output"):
            await make_analyzer(binary, tmp_path).analyze_dashboards()


class TestAnalyzeTenantCardinality:
    @pytest.mark.asyncio
    async def test_runs_prometheus_analysis(self, tmp_path, fake_mimirtool, calls):
        prometheus_doc = json.dumps(
            {
                "total_active_series": 1500,
                "in_use_active_series": 1200,
                "in_use_metric_counts": [
                    {"metric": "http_requests_total", "count": 1200},
                    {"metric": "up", "count": 3},
                ],
                "additional_metric_counts": [{"metric": "go_gc_duration_seconds", "count": 300}],
            }
        )
        binary = fake_mimirtool(prometheus=prometheus_doc)
        analyzer = make_analyzer(binary, tmp_path)
        artifact = DashboardUsageArtifact(path=tmp_path / GRAFANA_OUTPUT)

        usage = await analyzer.analyze_tenant_cardinality("team-a", artifact)

        assert usage.tenant == "team-a"
        assert usage.metrics == frozenset({"http_requests_total", "up"})
        assert "up" in usage
        assert "go_gc_duration_seconds" not in usage
        assert calls() == [
            [
                "analyze",
                "prometheus",
                "--address",
                "http://querier:8080",
                "--id",
                "team-a",
                "--prometheus-http-prefix",
                "prometheus",
                "--grafana-metrics-file",
                str(tmp_path / GRAFANA_OUTPUT),
                "--output",
                str(tmp_path / PROMETHEUS_OUTPUT),
            ]
        ]

    @pytest.mark.asyncio
    async def test_empty_in_use_list(self, tmp_path, fake_mimirtool):
        binary = fake_mimirtool(prometheus=json.dumps({"in_use_metric_counts": []}))
        artifact = DashboardUsageArtifact(path=tmp_path / GRAFANA_OUTPUT)

        usage = await make_analyzer(binary, tmp_path).analyze_tenant_cardinality("t", artifact)

        assert len(usage) == 0

    @pytest.mark.asyncio
    async def test_missing_in_use_metric_counts(self, tmp_path, fake_mimirtool, metrics):
        binary = fake_mimirtool(prometheus=json.dumps({"total_active_series": 10}))
        analyzer = make_analyzer(binary, tmp_path, metrics=metrics)
        artifact = DashboardUsageArtifact(path=tmp_path / GRAFANA_OUTPUT)

        with pytest.raises(ExternalToolError, match="in_use_metric_counts"):
            await analyzer.analyze_tenant_cardinality("team-a", artifact)

        assert (
            metrics.registry.get_sample_value(
                "mimirtool_executions_total",
                {"command": "analyze_prometheus", "status": "failure"},
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_in_use_metric_counts_not_a_list(self, tmp_path, fake_mimirtool):
        binary = fake_mimirtool(prometheus=json.dumps({"in_use_metric_counts": {"up": 1}}))
        artifact = DashboardUsageArtifact(path=tmp_path / GRAFANA_OUTPUT)

        with pytest.raises(ExternalToolError):
            await make_analyzer(binary, tmp_path).analyze_tenant_cardinality("t", artifact)

    @pytest.mark.asyncio
    async def test_stale_output_from_previous_tenant_not_reused(self, tmp_path, fake_mimirtool):
        stale = json.dumps({"in_use_metric_counts": [{"metric": "up", "count": 1}]})
        (tmp_path / PROMETHEUS_OUTPUT).write_text(stale)
        binary = fake_mimirtool(prometheus=None)
        artifact = DashboardUsageArtifact(path=tmp_path / GRAFANA_OUTPUT)

        with pytest.raises(ExternalToolError, match="Cannot read analyzer output"):
            await make_analyzer(binary, tmp_path).analyze_tenant_cardinality("team-b", artifact)

        assert not (tmp_path / PROMETHEUS_OUTPUT).exists()
