import uuid
import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..auth.tokens import AccessTokenIssuer
from ..config import get_settings
from ..exceptions import AuthenticationError

logger = logging.getLogger("access")


def resolve_user_id(request: Request):
    """User id from a valid ``Authorization: Bearer`` access token, else None."""
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        return AccessTokenIssuer(get_settings().auth).verify(token.strip())
    except AuthenticationError:
        return None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log line per request: method, path, caller, status and timing.

    The caller is resolved best-effort; routes still enforce authentication
    on their own, this only attributes the log entry.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        user_id = resolve_user_id(request)
        request.state.user_id = user_id

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "user_id": str(user_id) if user_id else None,
        }
        started = time.perf_counter()

        logger.info(
            f"{request.method} {request.url.path}",
            extra={**context, "client_ip": request.client.host if request.client else "unknown"},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} - Exception",
                extra={**context, "duration_ms": _elapsed_ms(started), "error": str(e)},
                exc_info=True,
            )
            raise

        logger.info(
            f"{request.method} {request.url.path} - {response.status_code}",
            extra={**context, "status_code": response.status_code, "duration_ms": _elapsed_ms(started)},
        )

        response.headers["X-Request-ID"] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
