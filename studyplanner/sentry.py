import logging
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from .config import Settings

logger = logging.getLogger(__name__)


def init_sentry(settings: Settings) -> bool:
    """Initialize Sentry error tracking (production only)

    Only initializes if SENTRY_DSN is configured and environment is production.
    Returns True when Sentry was started.
    """
    if not settings.sentry_dsn:
        logger.debug("Sentry not configured (SENTRY_DSN not set)")
        return False

    if not settings.is_production:
        logger.debug("Sentry disabled outside production")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[
            FastApiIntegration(),
            StarletteIntegration(),
            SqlalchemyIntegration(),
            LoggingIntegration(
                level=logging.INFO,  # Capture info and above as breadcrumbs
                event_level=logging.ERROR,  # Send errors to Sentry
            ),
        ],
        traces_sample_rate=0.1,
        environment=settings.environment,
        send_default_pii=False,  # request bodies carry tokens and passwords
    )

    logger.info("Sentry initialized")
    return True
