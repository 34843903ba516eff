"""FastAPI application factory"""

import logging
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from slowapi.errors import RateLimitExceeded
from starlette.responses import Response

from finance_tracker.api.middleware import MetricsMiddleware, RequestContextMiddleware
from finance_tracker.api.rate_limit import limiter, rate_limit_exceeded_handler
from finance_tracker.api.relay import payments, webhooks
from finance_tracker.api.v1 import reports, savings, transactions
from finance_tracker.domain.exceptions import (
    NotAuthenticatedError,
    RecordNotFoundError,
    StoreError,
    ValidationError,
)
from finance_tracker.infrastructure.observability.logging import setup_logging
from finance_tracker.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def _error_handler(status_code: int):
    def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logging.error(
                f"Request failed: {exc}",
                extra={"request_id": getattr(request.state, "request_id", "unknown")},
            )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


async def relay_validation_handler(request: Request, exc: RequestValidationError):
    """Relay callers always get the {success, message} shape, even for unparseable bodies"""
    if request.url.path.startswith("/api/payments"):
        return JSONResponse(status_code=400, content={"success": False, "message": "Invalid request body"})
    return await request_validation_exception_handler(request, exc)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finance Tracker",
        description="Personal finance tracking with mobile-money savings",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.limiter = limiter

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Domain errors raised by stores and validators
    app.add_exception_handler(ValidationError, _error_handler(400))
    app.add_exception_handler(NotAuthenticatedError, _error_handler(401))
    app.add_exception_handler(RecordNotFoundError, _error_handler(404))
    app.add_exception_handler(StoreError, _error_handler(503))
    app.add_exception_handler(RequestValidationError, relay_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Health check endpoint
    @app.get("/api/health")
    def health_check():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
            "mesomb_configured": settings.mesomb_configured,
            "service": settings.service_name,
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(payments.router, prefix="/api", tags=["payments"])
    app.include_router(webhooks.router, prefix="/api", tags=["webhooks"])
    app.include_router(transactions.router, prefix="/api/v1", tags=["transactions"])
    app.include_router(reports.router, prefix="/api/v1", tags=["reports"])
    app.include_router(savings.router, prefix="/api/v1", tags=["savings"])

    return app


app = create_app()
