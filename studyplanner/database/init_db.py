"""
Database initialization utilities
"""

import logging
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from .core import engine, Base
from ..entities.user import User  # noqa: F401
from ..entities.refresh_token import RefreshToken  # noqa: F401
from ..entities.category import Category  # noqa: F401
from ..entities.study_range import StudyRange  # noqa: F401
from ..entities.daily_note import DailyNote  # noqa: F401

logger = logging.getLogger(__name__)


def init_database(bind=None) -> bool:
    """
    Create every table registered on the declarative Base.
    Existing tables are left untouched.
    """
    bind = bind or engine
    try:
        Base.metadata.create_all(bind=bind)
        logger.info(f"Database initialized with tables: {', '.join(sorted(Base.metadata.tables))}")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        return False


def check_database_connection(bind=None) -> bool:
    """Check if database connection is working"""
    bind = bind or engine
    try:
        with bind.connect() as conn:
            conn.execute(text("SELECT 1"))
            return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False


if __name__ == "__main__":
    if check_database_connection():
        init_database()
    else:
        print("Please check your database connection and try again.")
