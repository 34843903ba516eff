"""Per-client rate limiting for the payment relay"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from finance_tracker.config import settings

limiter = Limiter(key_func=get_remote_address)


def payment_rate_limit() -> str:
    """Read on every request so the window follows the current settings"""
    return f"{settings.payment_rate_limit_max} per {settings.payment_rate_limit_window_minutes} minutes"


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logging.warning(
        "Payment relay rate limit exceeded",
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "client": get_remote_address(request),
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": "Too many requests from this IP, please try again later."},
    )
