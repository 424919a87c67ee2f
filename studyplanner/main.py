from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import register_exception_handlers, register_routes
from .config import get_settings
from .database.init_db import init_database
from .logging import configure_logging
from .middleware.logging import RequestLoggingMiddleware
from .middleware.security import SecurityHeadersMiddleware
from .rate_limiter import limiter
from .sentry import init_sentry

settings = get_settings()

configure_logging(settings.log_level)
init_sentry(settings)

app = FastAPI(title="Study Planner API")
app.state.limiter = limiter

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Only create tables in development environment; elsewhere the schema is provisioned ahead of time
if settings.is_development:
    init_database()

register_exception_handlers(app)
register_routes(app)
