"""
Grafana HTTP API provider.

Reads provisioned alert rules and datasources. Only the read side of the
API is used.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any

import httpx
import structlog

from cardinality_analyzer.alerts.models import Alert, Datasource
from cardinality_analyzer.core.errors import ProviderError
from cardinality_analyzer.metrics.registry import AnalyzerMetrics, Target

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "mimir-cardinality-analyzer-grafana/0.1.0"


class GrafanaProviderError(ProviderError):
    """Raised when the Grafana API request fails or returns bad data."""


class GrafanaProvider:
    """
    Read-only Grafana API client.

    API endpoints:
        GET /api/v1/provisioning/alert-rules - Provisioned alert rules
        GET /api/datasources - All datasources
    """

    def __init__(
        self,
        url: str,
        token: str | None,
        *,
        insecure: bool = False,
        timeout: float | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        metrics: AnalyzerMetrics | None = None,
    ) -> None:
        self._base_url = url.rstrip("/")
        self._token = token
        self._insecure = insecure
        self._timeout = timeout
        self._user_agent = user_agent
        self._metrics = metrics

    async def get_alert_rules(self) -> list[Alert]:
        """
        Fetch all provisioned alert rules, unfiltered.

        Raises:
            GrafanaProviderError: If the request fails or the body is not a
                list of alert rules
        """
        logger.info("fetching_alert_rules")
        data = await self._request("GET", "/api/v1/provisioning/alert-rules")
        try:
            return [Alert.from_dict(item) for item in data]
        except (KeyError, TypeError, AttributeError) as exc:
            self._record_failure()
            raise GrafanaProviderError(f"Malformed alert rule listing: {exc}") from exc

    async def get_datasources(self) -> list[Datasource]:
        """
        Fetch all datasources.

        Raises:
            GrafanaProviderError: If the request fails or the body is malformed
        """
        logger.info("fetching_datasources")
        data = await self._request("GET", "/api/datasources")
        try:
            return [Datasource.from_dict(item) for item in data]
        except (KeyError, TypeError, AttributeError) as exc:
            self._record_failure()
            raise GrafanaProviderError(f"Malformed datasource listing: {exc}") from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        headers = kwargs.pop("headers", {}) or {}
        if self._token:
            headers.setdefault("Authorization", f"Bearer {self._token}")
        headers.setdefault("Accept", "application/json")
        headers.setdefault("User-Agent", self._user_agent)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, verify=not self._insecure
            ) as client:
                with self._timer():
                    resp = await client.request(method, url, headers=headers, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            self._record_failure()
            raise GrafanaProviderError(
                f"Grafana returned HTTP {exc.response.status_code} for {path}",
                details={"url": url, "status": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            self._record_failure()
            raise GrafanaProviderError(
                f"Failed to reach Grafana at {url}: {exc}", details={"url": url}
            ) from exc
        except ValueError as exc:
            self._record_failure()
            raise GrafanaProviderError(
                f"Invalid JSON from Grafana for {path}", details={"url": url}
            ) from exc

    def _timer(self):
        if self._metrics is None:
            return nullcontext()
        return self._metrics.external_request_timer(Target.GRAFANA)

    def _record_failure(self) -> None:
        if self._metrics is not None:
            self._metrics.record_external_request_failure(Target.GRAFANA)
