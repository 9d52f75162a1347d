"""Engine, session factory and schema creation."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from trainload.config import get_settings
from trainload.models.base import Base

settings = get_settings()

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def build_engine(database_url: str) -> Engine:
    """
    Create the engine for a database URL.

    SQLite connections are shared across request threads, and an in-memory
    SQLite database is kept on a single connection so that every session
    sees the same tables.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    options = {"connect_args": {"check_same_thread": False}}
    if database_url in IN_MEMORY_URLS:
        options["poolclass"] = StaticPool
    return create_engine(database_url, **options)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Request-scoped session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """Create every table registered on Base (default: the configured engine)."""
    # Registers athletes, activities, planned workouts, fitness metrics and states
    import trainload.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
