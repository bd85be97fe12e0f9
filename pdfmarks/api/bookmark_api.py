#!/usr/bin/env python3
"""
Bookmark editor REST API.

Wraps editing sessions (bookmark tree + undo history per open PDF) in a
FastAPI application.
"""
import logging
import time
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Gauge, Histogram
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from pdfmarks import __version__
from pdfmarks.adapters.pdf.pymupdf import PyMuPDFOutlineAdapter
from pdfmarks.api.routes.bookmarks import create_bookmarks_router
from pdfmarks.api.routes.health import create_health_router
from pdfmarks.api.storage.session_store import SessionStore
from pdfmarks.config.bookmark_settings import get_api_key
from pdfmarks.core.exceptions import (
    BookmarkNotFoundError,
    CoreError,
    MalformedInputError,
    ObjectStoreError,
    PDFError,
    SessionNotFoundError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "bookmark_api_requests_total", "Total API requests", [
        "method", "endpoint", "status"])
REQUEST_DURATION = Histogram(
    "bookmark_api_request_duration_seconds",
    "Request duration")
ACTIVE_SESSIONS = Gauge("bookmark_active_sessions", "Number of open editing sessions")

ERROR_STATUS = (
    (MalformedInputError, 422, "MALFORMED_INPUT"),
    (ValidationError, 422, "VALIDATION_ERROR"),
    (BookmarkNotFoundError, 404, "BOOKMARK_NOT_FOUND"),
    (SessionNotFoundError, 404, "SESSION_NOT_FOUND"),
    (ObjectStoreError, 500, "OUTLINE_WRITE_FAILED"),
    (PDFError, 500, "PDF_ERROR"),
)


def error_status(exc: CoreError):
    """Map a core error to (status code, error code)."""
    for error_type, status_code, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, code
    return 500, "CORE_ERROR"


class BookmarkEditorAPI:
    """Bookmark editor API with dependency injection"""

    def __init__(
        self,
        pdf_adapter: Optional[PyMuPDFOutlineAdapter] = None,
        session_store: Optional[SessionStore] = None,
    ):
        """Initialize API with dependency injection.

        Args:
            pdf_adapter: PDF adapter (default: PyMuPDFOutlineAdapter)
            session_store: Session storage (default: in-memory SessionStore)
        """
        self.pdf_adapter = pdf_adapter or PyMuPDFOutlineAdapter()
        self.sessions = session_store or SessionStore()
        self.start_time = time.time()
        # One limiter per app; its counters are not shared with other instances
        self.limiter = Limiter(key_func=get_remote_address)

        self.app = FastAPI(
            title="PDF Bookmark Editor API",
            description="Edit, import, export and write PDF bookmark outlines",
            version=__version__,
            docs_url="/docs",
            redoc_url="/redoc",
        )

        self._setup_middleware()
        self._setup_routes()

    def _setup_middleware(self):
        """Setup API middleware"""
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Rate limiting
        self.app.state.limiter = self.limiter
        self.app.add_exception_handler(
            RateLimitExceeded, _rate_limit_exceeded_handler)
        self.app.add_middleware(SlowAPIMiddleware)

        # Request logging middleware
        @self.app.middleware("http")
        async def log_requests(request, call_next):
            start_time = time.time()
            response = await call_next(request)
            process_time = time.time() - start_time

            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()
            REQUEST_DURATION.observe(process_time)
            ACTIVE_SESSIONS.set(len(self.sessions))

            logger.info(
                f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s"
            )
            return response

    def _setup_routes(self):
        """Setup API routes"""
        @self.app.get("/")
        async def root():
            return {
                "service": "PDF Bookmark Editor API",
                "version": __version__,
                "status": "operational",
                "docs": "/docs",
            }

        self.app.include_router(create_health_router(
            start_time=self.start_time,
            active_sessions_getter=lambda: len(self.sessions),
        ))
        self.app.include_router(create_bookmarks_router(self.sessions, self.pdf_adapter, self.limiter))
        self._setup_error_handlers()

    def _setup_error_handlers(self):
        """Setup error handlers"""
        @self.app.exception_handler(CoreError)
        async def core_error_handler(request, exc):
            status_code, code = error_status(exc)
            if status_code >= 500:
                logger.error(f"{code}: {exc}")
            else:
                logger.warning(f"{code}: {exc}")
            return JSONResponse(
                status_code=status_code,
                content={
                    "error": code,
                    "message": str(exc),
                    "details": {"type": type(exc).__name__},
                    "timestamp": datetime.now().isoformat(),
                },
            )

        @self.app.exception_handler(HTTPException)
        async def http_exception_handler(request, exc):
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": f"HTTP_{exc.status_code}",
                    "message": exc.detail,
                    "timestamp": datetime.now().isoformat(),
                },
                headers=getattr(exc, "headers", None),
            )

        @self.app.exception_handler(Exception)
        async def global_exception_handler(request, exc):
            logger.error(f"Unhandled exception: {exc}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "An internal server error occurred",
                    "details": {"exception": str(exc)},
                    "timestamp": datetime.now().isoformat(),
                },
            )


def create_app() -> FastAPI:
    """Create FastAPI application"""
    return BookmarkEditorAPI().app


# CLI entry point
if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="PDF Bookmark Editor API")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()
    if get_api_key() is None:
        parser.error("API_KEY must be set; session routes reject every request without it")
    uvicorn.run(create_app(), host=args.host, port=args.port, reload=args.reload)
