"""
Health and metrics endpoints.
No authentication required.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from app.dependencies import Gateway
from app.services.metrics import get_metrics_collector

router = APIRouter()


@router.get("/health")
async def health_check(gateway: Gateway):
    """
    Service health check endpoint.

    Reports the configured storage backend and whether audit
    emission is enabled. Backends are not probed.
    """
    return {
        "status": "ok",
        "storage": gateway.backend.name,
        "audit": "enabled" if gateway.audit.enabled else "disabled",
    }


@router.get("/metrics")
async def metrics():
    """
    Request metrics as JSON: request counts, response times,
    error rates and status code counts.
    """
    return get_metrics_collector().get_metrics()


@router.get("/metrics/prometheus", response_class=PlainTextResponse)
async def metrics_prometheus():
    """
    Prometheus text exposition format endpoint.
    Compatible with Prometheus scraping.
    """
    return PlainTextResponse(
        content=get_metrics_collector().to_prometheus(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
