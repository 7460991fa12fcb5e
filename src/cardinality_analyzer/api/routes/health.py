from __future__ import annotations

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/alive", status_code=status.HTTP_200_OK)
async def alive() -> Response:
    """Liveness probe; answers as long as the event loop is serving."""
    return Response(status_code=status.HTTP_200_OK)


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    """Prometheus text exposition of every registered series."""
    registry = getattr(request.app.state, "metrics", None)
    if registry is None:
        return PlainTextResponse(
            "Failed to get the metrics registry",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return Response(content=registry.render(), media_type=registry.CONTENT_TYPE)
