"""
Tests for the command line entry point.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cardinality_analyzer.analysis.pipeline import AnalysisPipeline
from cardinality_analyzer.cli.main import build_parser, build_pipeline, main
from cardinality_analyzer.config import Settings
from cardinality_analyzer.config.models import (
    AnalyzerConfig,
    GrafanaConfig,
    HttpConfig,
    MimirConfig,
)
from cardinality_analyzer.core.errors import ExitCode


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def config(tmp_path):
    return AnalyzerConfig(
        grafana=GrafanaConfig(url="https://grafana.example.com", token="t"),
        mimir=MimirConfig(
            store_gateway_url="http://store-gateway:8080", querier_url="http://querier:8080"
        ),
        http=HttpConfig(host="127.0.0.1", port=9090),
        output_dir=tmp_path,
    )


class TestParser:
    def test_defaults(self, settings):
        args = build_parser(settings).parse_args(["--config", "config.yaml"])

        assert args.config == Path("config.yaml")
        assert args.output_dir == Path(".")
        assert args.interval == 86400
        assert args.disable_alert_correlation is False
        assert args.log_level == "INFO"

    def test_all_flags(self, settings):
        args = build_parser(settings).parse_args(
            [
                "-c",
                "c.yaml",
                "-o",
                "/tmp/out",
                "--interval",
                "3600",
                "--disable-alert-correlation",
                "--log-level",
                "debug",
            ]
        )

        assert args.output_dir == Path("/tmp/out")
        assert args.interval == 3600.0
        assert args.disable_alert_correlation is True
        assert args.log_level == "DEBUG"

    def test_config_required(self, settings):
        with pytest.raises(SystemExit):
            build_parser(settings).parse_args([])

    @pytest.mark.parametrize("value", ["0", "-5", "soon"])
    def test_invalid_interval(self, settings, value):
        with pytest.raises(SystemExit):
            build_parser(settings).parse_args(["-c", "c.yaml", "--interval", value])

    def test_interval_default_from_settings(self, monkeypatch):
        monkeypatch.setenv("CARDINALITY_ANALYZER_DEFAULT_INTERVAL_SECONDS", "600")

        args = build_parser(Settings(_env_file=None)).parse_args(["-c", "c.yaml"])

        assert args.interval == 600


class TestBuildPipeline:
    def test_wires_components(self, config, settings, metrics):
        pipeline = build_pipeline(config, settings, metrics, alert_correlation=False)

        assert isinstance(pipeline, AnalysisPipeline)
        assert pipeline.classifier.alert_correlation is False
        assert pipeline.metrics is metrics


class TestMain:
    def test_missing_config_exit_code(self, tmp_path):
        with patch("cardinality_analyzer.cli.main.configure_logging"):
            code = main(["--config", str(tmp_path / "missing.yaml")])

        assert code == ExitCode.CONFIG_ERROR

    def test_runs_with_parsed_arguments(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "grafana:\n  url: https://g\n"
            "mimir:\n  storeGatewayUrl: http://sg\n  querierUrl: http://q\n"
            "http:\n  host: 127.0.0.1\n  port: 9090\n"
        )
        out = tmp_path / "out"

        with (
            patch("cardinality_analyzer.cli.main.configure_logging"),
            patch("cardinality_analyzer.cli.main.run", new_callable=MagicMock) as run,
            patch("cardinality_analyzer.cli.main.asyncio.run") as asyncio_run,
        ):
            code = main(
                ["-c", str(config_path), "-o", str(out), "--disable-alert-correlation"]
            )

        assert code == ExitCode.SUCCESS
        assert out.is_dir()
        asyncio_run.assert_called_once_with(run.return_value)
        loaded, _settings = run.call_args.args
        assert loaded.output_dir == out
        assert run.call_args.kwargs["alert_correlation"] is False
