"""
Mimir provider.

Discovers tenants from the store-gateway status page and reads per-tenant
cardinality from the querier.
"""

from __future__ import annotations

from contextlib import nullcontext
from html.parser import HTMLParser

import httpx
import structlog

from cardinality_analyzer.analysis.models import CardinalityTopList
from cardinality_analyzer.core.errors import ProviderError
from cardinality_analyzer.metrics.registry import AnalyzerMetrics, Target

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "mimir-cardinality-analyzer-mimir/0.1.0"
TENANT_HEADER = "X-Scope-OrgID"


class MimirProviderError(ProviderError):
    """Raised when a Mimir component request fails or returns bad data."""


class TenantTableParser(HTMLParser):
    """
    Collects the text of ``table tbody tr td a`` elements.

    The store-gateway tenants page lists one tenant per row, each wrapped in
    a link to the tenant's block listing. ``tbody`` may be implicit; links
    inside ``thead`` are ignored.
    """

    _PATH = ("table", "tr", "td", "a")

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._stack: list[str] = []
        self._current: list[str] | None = None
        self.tenants: list[str] = []

    def _in_tenant_link(self) -> bool:
        # Descendant match: each path element must appear in order.
        it = iter(self._stack)
        return (
            all(tag in it for tag in self._PATH)
            and self._stack[-1] == "a"
            and "thead" not in self._stack
        )

    def handle_starttag(self, tag: str, attrs) -> None:  # noqa: ANN001
        self._stack.append(tag)
        if tag == "a" and self._in_tenant_link():
            self._current = []

    def handle_endtag(self, tag: str) -> None:
        if tag == "a" and self._current is not None:
            text = "".join(self._current).strip()
            if text:
                self.tenants.append(text)
            self._current = None
        if tag in self._stack:
            # Pop up to and including the matching open tag; tolerates unclosed children.
            while self._stack:
                if self._stack.pop() == tag:
                    break

    def handle_data(self, data: str) -> None:
        if self._current is not None:
            self._current.append(data)


def parse_tenants(html: str) -> list[str]:
    """Extract unique tenant ids from the tenants page, in page order."""
    parser = TenantTableParser()
    parser.feed(html)
    parser.close()
    return list(dict.fromkeys(parser.tenants))


class MimirProvider:
    """
    Mimir store-gateway and querier client.

    API endpoints:
        GET {store_gateway}/store-gateway/tenants - HTML tenant listing
        GET {querier}/prometheus/api/v1/cardinality/label_values - Cardinality
            per label value, scoped by the X-Scope-OrgID header
    """

    def __init__(
        self,
        store_gateway_url: str,
        querier_url: str,
        *,
        timeout: float | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        metrics: AnalyzerMetrics | None = None,
    ) -> None:
        self._store_gateway_url = store_gateway_url.rstrip("/")
        self._querier_url = querier_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent
        self._metrics = metrics

    async def get_tenants(self) -> list[str]:
        """
        List tenants known to the store-gateway.

        Returns:
            Tenant ids, deduplicated, in listing order

        Raises:
            MimirProviderError: If the page cannot be fetched
        """
        logger.info("fetching_tenants")
        url = f"{self._store_gateway_url}/store-gateway/tenants"
        response = await self._get(url, Target.STORE_GATEWAY)
        tenants = parse_tenants(response.text)
        logger.info("fetched_tenants", count=len(tenants))
        return tenants

    async def get_top_metrics(self, tenant: str, limit: int = 100) -> CardinalityTopList:
        """
        Fetch the metric names with the most series for a tenant.

        Args:
            tenant: Tenant id, sent as X-Scope-OrgID
            limit: Maximum number of metric names

        Raises:
            MimirProviderError: If the request fails or the response is malformed
        """
        url = f"{self._querier_url}/prometheus/api/v1/cardinality/label_values"
        params = {"label_names[]": "__name__", "limit": str(limit)}
        response = await self._get(
            url, Target.QUERIER, params=params, headers={TENANT_HEADER: tenant}
        )

        try:
            top = CardinalityTopList.from_response(tenant, response.json())
        except (KeyError, TypeError, ValueError) as exc:
            self._record_failure(Target.QUERIER)
            raise MimirProviderError(
                f"Malformed cardinality response for tenant '{tenant}': {exc}",
                details={"tenant": tenant},
            ) from exc

        logger.debug("fetched_top_metrics", tenant=tenant, count=len(top))
        return top

    async def _get(
        self,
        url: str,
        target: Target,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        req_headers = {"User-Agent": self._user_agent}
        if headers:
            req_headers.update(headers)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                with self._timer(target):
                    response = await client.get(url, params=params, headers=req_headers)
        except httpx.HTTPError as exc:
            self._record_failure(target)
            raise MimirProviderError(
                f"Failed to connect to {target.value} at {url}: {exc}",
                details={"url": url},
            ) from exc

        if not response.is_success:
            self._record_failure(target)
            raise MimirProviderError(
                f"Request to {target.value} failed: HTTP {response.status_code}",
                details={"url": url, "status": response.status_code},
            )
        return response

    def _timer(self, target: Target):
        if self._metrics is None:
            return nullcontext()
        return self._metrics.external_request_timer(target)

    def _record_failure(self, target: Target) -> None:
        if self._metrics is not None:
            self._metrics.record_external_request_failure(target)
