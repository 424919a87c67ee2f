import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from .auth.controller import router as auth_router
from .users.controller import router as users_router
from .categories.controller import router as categories_router
from .study_ranges.controller import router as study_ranges_router
from .daily_notes.controller import router as daily_notes_router
from .exceptions import AppError
from .rate_limiter import rate_limit_error_handler

logger = logging.getLogger(__name__)


def register_routes(app: FastAPI):
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(categories_router)
    app.include_router(study_ranges_router)
    app.include_router(daily_notes_router)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Invalid input on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "invalid_input"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "internal_error"})


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
