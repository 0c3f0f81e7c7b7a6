"""
Database configuration and session management for the SQL report store.
"""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from sentinel.config import get_settings
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)

# Base class for ORM models
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create an engine, relaxing SQLite's same-thread check for the threadpool."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


@lru_cache()
def get_engine() -> Engine:
    """Engine for the configured DATABASE_URL, created on first use."""
    return build_engine(get_settings().database_url)


@lru_cache()
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_db(engine: Engine = None) -> None:
    """
    Create the report tables if they do not exist.
    Called during application startup when the database backend is active.
    """
    # Register the ORM tables on Base.metadata
    import sentinel.models.report  # noqa: F401

    engine = engine or get_engine()
    try:
        logger.info("Initializing database tables", url=str(engine.url))
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise
