"""
Database setup with SQLAlchemy.
"""
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pvtest.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Session:
    """
    Dependency function to get database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Initialize database tables."""
    bind = bind or engine
    try:
        from pvtest.models import experiment, test_data, alert, device, template

        Base.metadata.create_all(bind=bind)
        logger.info("Database tables created successfully")

        tables = inspect(bind).get_table_names()
        logger.info(f"Database tables: {tables}")

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def reset_db(bind=None):
    """Drop and recreate all tables (use with caution!)."""
    bind = bind or engine
    try:
        from pvtest.models import experiment, test_data, alert, device, template

        Base.metadata.drop_all(bind=bind)
        logger.info("Database tables dropped")

        Base.metadata.create_all(bind=bind)
        logger.info("Database tables recreated")

    except Exception as e:
        logger.error(f"Failed to reset database: {e}")
        raise
