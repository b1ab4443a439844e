"""
Database Session Management - Engine, session factory and declarative base
"""

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
import logging

from taskboard.core.config import settings

logger = logging.getLogger(__name__)

def build_engine(database_url: str, **kwargs) -> Engine:
    """
    Create an engine for the configured backend.

    SQLite gets cross-thread access (FastAPI runs sync endpoints in a
    threadpool) and no pool sizing; server databases get the pool settings.
    Extra keyword arguments (e.g. poolclass for tests) go to create_engine.
    """
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})  # Sessions cross threads
    else:
        kwargs.setdefault("pool_size", settings.DB_POOL_SIZE)  # Persistent connections
        kwargs.setdefault("max_overflow", settings.DB_MAX_OVERFLOW)  # Extra connections when exhausted
        kwargs.setdefault("pool_timeout", settings.DB_POOL_TIMEOUT)  # Wait for a free connection
        kwargs.setdefault("pool_pre_ping", True)  # Check connection health before use
    new_engine = create_engine(
        database_url,
        echo=settings.DEBUG,  # Log SQL in debug mode
        **kwargs,
    )
    register_engine_events(new_engine)
    return new_engine

def register_engine_events(target: Engine) -> None:
    """Attach connection lifecycle hooks to an engine"""

    # Runs for every new DBAPI connection
    @event.listens_for(target, "connect")
    def receive_connect(dbapi_conn, connection_record):
        # ON DELETE CASCADE / SET NULL rules depend on this for SQLite
        if target.dialect.name == "sqlite":
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
        logger.debug("🔌 New database connection established")

    # Track connection lifecycle
    @event.listens_for(target, "close")
    def receive_close(dbapi_conn, connection_record):
        logger.debug("🔌 Database connection closed")

engine = build_engine(settings.DATABASE_URL)

# Session factory - one session per request
SessionLocal = sessionmaker(
    autocommit=False,  # The store commits each single-row write itself
    autoflush=False,  # Flush only on commit
    expire_on_commit=False,  # Rows stay readable after the write that returned them
    bind=engine,
)

# Base class for all models - metadata and table registry
Base = declarative_base()

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides one session per request.
    Rolls back whatever is still pending if the request fails.
    """
    db = SessionLocal()  # New session for this request
    try:
        yield db  # Hand the session to the endpoint
    except Exception as e:
        logger.error(f"❌ Database error during request: {str(e)}", exc_info=True)
        db.rollback()  # Discard the failed transaction
        raise  # FastAPI's exception handlers build the response
    finally:
        db.close()  # Return the connection to the pool
        logger.debug("✅ Database session closed")

def init_db(bind: Engine = None) -> None:
    """
    Create all tables.

    Args:
        bind: Engine to create them on (defaults to the configured engine;
              tests pass an in-memory one)

    Used for development and tests - production should manage the schema
    with migrations.
    """
    logger.info("🏗️  Creating database tables...")
    try:
        from taskboard.models import user, task, task_group, task_file, audit_log  # noqa: F401 - register tables
        Base.metadata.create_all(bind=bind or engine)  # Create every table defined in models
        logger.info("✅ Database tables created successfully")
    except Exception as e:
        logger.error(f"❌ Failed to create database tables: {str(e)}", exc_info=True)
        raise  # The app must not start without its tables

def check_db_connection() -> bool:
    """
    Verify database connectivity - used at startup and by the health check.
    Returns True if the connection works, False otherwise.
    """
    try:
        with SessionLocal() as db:  # Session is closed on exit
            db.execute(text("SELECT 1"))  # Cheapest round trip
        logger.info("✅ Database connection successful")
        return True
    except Exception as e:
        logger.error(f"❌ Database connection failed: {str(e)}", exc_info=True)
        return False

def get_pool_stats() -> dict:
    """
    Connection pool statistics.
    Pools that do not track usage (SQLite's) only report their class name.
    """
    pool = engine.pool
    if not hasattr(pool, "checkedout"):
        return {"pool": type(pool).__name__}
    return {
        "pool_size": pool.size(),  # Total connections in pool
        "checked_out": pool.checkedout(),  # Currently in use
        "overflow": pool.overflow(),  # Connections beyond pool_size
        "checked_in": pool.checkedin(),  # Idle connections
    }

def close_db_connections():
    """
    Dispose of pooled connections.
    Called during application shutdown.
    """
    logger.info("🔌 Closing database connections...")
    engine.dispose()  # Close every pooled connection
    logger.info("✅ All database connections closed")
