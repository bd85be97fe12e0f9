"""Health check and monitoring routes"""
import time
from datetime import datetime

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import generate_latest

from pdfmarks import __version__
from pdfmarks.api.schemas import HealthResponse


def create_health_router(start_time: float, active_sessions_getter=None) -> APIRouter:
    """Create health check router.

    Args:
        start_time: Server start time for uptime calculation
        active_sessions_getter: Callable that returns open session count

    Returns:
        FastAPI router with health endpoints
    """
    router = APIRouter()

    @router.get("/api/v1/bookmarks/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        active_count = active_sessions_getter() if active_sessions_getter else 0

        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(),
            version=__version__,
            uptime=time.time() - start_time,
            system_info={"active_sessions": active_count},
        )

    @router.get("/metrics")
    async def get_metrics():
        """Prometheus metrics endpoint"""
        return Response(generate_latest(), media_type="text/plain")

    @router.get("/api/v1/bookmarks/formats")
    async def get_supported_formats():
        """Get supported interchange formats"""
        return {
            "formats": [
                {"format": "csv", "description": "title,page,level rows in pre-order"},
                {"format": "json", "description": "Nested node objects including ids"},
                {"format": "pdf", "description": "Native PDF document outline"},
            ]
        }

    return router
