from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
import logging

from .audit import AuthEventType, extract_request_info, log_auth_event

logger = logging.getLogger(__name__)

# Initialize limiter with remote address as key
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",  # In-memory storage (use Redis for production)
)

# Rate limit configurations for different endpoint categories
RATE_LIMITS = {
    # Authentication endpoints (strict limits)
    "auth_register": "5/hour",
    "auth_login": "5/minute",
    "auth_refresh": "10/minute",
    "auth_logout": "20/minute",

    # Study data endpoints (moderate limits)
    "planner_read": "60/minute",
    "planner_write": "30/minute",
}


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Custom error handler for rate limit exceeded errors."""
    logger.warning(
        f"Rate limit exceeded for {request.client.host if request.client else 'unknown'} on {request.url.path}"
    )
    log_auth_event(
        AuthEventType.RATE_LIMIT_EXCEEDED,
        details={"path": request.url.path},
        success=False,
        **extract_request_info(request),
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later.",
        },
        headers={
            "Retry-After": "60",
            "X-RateLimit-Limit": str(getattr(exc, 'detail', '')),
        }
    )
