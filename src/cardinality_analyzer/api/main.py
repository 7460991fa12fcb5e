from __future__ import annotations

import time
from typing import Awaitable, Callable

import uvicorn
from fastapi import FastAPI, Request, Response

from cardinality_analyzer import __version__
from cardinality_analyzer.api.routes import health
from cardinality_analyzer.config.models import HttpConfig
from cardinality_analyzer.metrics.registry import AnalyzerMetrics


UNMATCHED_ENDPOINT = "other"


def _endpoint_label(app: FastAPI, request: Request) -> str:
    # Paths without a registered route share one label.
    path = request.url.path
    if any(getattr(route, "path", None) == path for route in app.routes):
        return path
    return UNMATCHED_ENDPOINT


def create_app(metrics: AnalyzerMetrics | None) -> FastAPI:
    app = FastAPI(
        title="Mimir Cardinality Analyzer",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.metrics = metrics

    @app.middleware("http")
    async def record_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        if metrics is not None:
            metrics.record_http_request(_endpoint_label(app, request), time.perf_counter() - start)
        return response

    app.include_router(health.router, tags=["health"])
    return app


def create_server(app: FastAPI, http: HttpConfig, log_level: str = "info") -> uvicorn.Server:
    config = uvicorn.Config(
        app,
        host=http.host,
        port=http.port,
        log_level=log_level.lower(),
        access_log=False,
    )
    return uvicorn.Server(config)
