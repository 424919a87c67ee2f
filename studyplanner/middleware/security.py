"""
Security middleware for adding security headers to all responses.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import logging

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    # Prevent MIME type sniffing attacks
    "X-Content-Type-Options": "nosniff",
    # Prevent clickjacking attacks
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
    # Token responses must never be cached
    "Cache-Control": "no-store",
    # A JSON API needs no active content
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all HTTP responses.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)

        # Add HTTPS-only headers if request is secure
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        logger.debug(f"Applied security headers to {request.method} {request.url.path}")
        return response
