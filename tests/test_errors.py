"""Tests for exit-code mapping at the process entry point."""

from cardinality_analyzer.core.errors import (
    ConfigurationError,
    ExitCode,
    ExternalToolError,
    ProviderError,
    main_with_error_handling,
)


def _raising(exc):
    @main_with_error_handling(log_errors=False)
    def command():
        raise exc

    return command


class TestMainWithErrorHandling:
    def test_success_passthrough(self):
        @main_with_error_handling()
        def command():
            return ExitCode.SUCCESS

        assert command() == 0

    def test_configuration_error(self):
        assert _raising(ConfigurationError("bad config"))() == ExitCode.CONFIG_ERROR

    def test_provider_error(self):
        assert _raising(ProviderError("grafana down"))() == ExitCode.PROVIDER_ERROR

    def test_external_tool_error(self):
        assert _raising(ExternalToolError("mimirtool failed"))() == ExitCode.PROVIDER_ERROR

    def test_keyboard_interrupt(self):
        assert _raising(KeyboardInterrupt())() == 130

    def test_unexpected_error(self):
        assert _raising(RuntimeError("boom"))() == ExitCode.UNKNOWN_ERROR

    def test_error_details(self):
        error = ConfigurationError("Missing key", details={"key": "url"})

        assert error.message == "Missing key"
        assert error.details == {"key": "url"}
        assert str(error) == "Missing key"
