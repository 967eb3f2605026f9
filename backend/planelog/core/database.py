import logging
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from planelog.core.config import settings
from planelog.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """Build create_engine keyword arguments for the configured backend."""
    if url.startswith("sqlite"):
        # Requests run on worker threads, so the connection may cross threads
        options = {"connect_args": {"check_same_thread": False}}
        # In-memory databases only exist on one connection, so share it
        # Without StaticPool every new connection would see an empty database
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options
    return {
        # Test pooled connections before use - drops ones the server closed
        "pool_pre_ping": True,
        # Bounded connect time; the driver enforces it, not application code
        "connect_args": {"connect_timeout": settings.DB_CONNECT_TIMEOUT},
    }


# Create database engine - single process-wide handle that manages the connection pool
# Created once at import and shared by every request
engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Create session factory - each request gets a new session
# autocommit=False: Changes require explicit commit
# autoflush=False: Don't auto-flush before queries
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all database models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.

    Each request gets its own session, closed when the request completes.
    Using yield makes this a generator dependency - FastAPI handles the cleanup.
    """
    db = SessionLocal()
    try:
        # Code after yield runs when request completes
        yield db
    finally:
        # Always close session, even if request raises an exception
        # Returns the connection to the pool and rolls back anything uncommitted
        db.close()


def init_db() -> None:
    """
    Connect to the store and create missing tables.

    Called once at startup. Raises StoreUnavailable when the database cannot
    be reached so the process refuses to serve without a store.
    """
    # Models must be imported so their tables are registered on Base
    from planelog.models import plane, user  # noqa: F401

    try:
        # Round trip first so an unreachable server fails here with a clear error
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        # Creates tables that don't exist yet; existing tables are left alone
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error(f"Could not connect to database: {e}")
        raise StoreUnavailable("Database is unavailable") from e
    logger.info("Database connection established")


def close_db() -> None:
    """Release pooled connections on shutdown."""
    engine.dispose()
