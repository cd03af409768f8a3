"""Database configuration and session management."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


# Base class for ORM models
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def create_db_engine(database_url: str) -> Engine:
    """
    Create the database engine.

    Postgres connections get pooling, bounded waits and READ COMMITTED
    isolation; any other URL (SQLite in tests and scripts) uses the
    driver defaults.
    """
    if not database_url.startswith("postgresql"):
        return create_engine(database_url)

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Enable connection health checks
        pool_size=10,
        max_overflow=20,
        pool_timeout=5,  # Fail fast instead of queueing behind an exhausted pool
        pool_recycle=3600,
        isolation_level="READ COMMITTED",
        connect_args={
            "connect_timeout": 5,
            "options": "-c lock_timeout=5000 -c statement_timeout=10000",
        },
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create the session factory bound to an engine."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,  # Prevent lazy loading errors after commit
    )


# Dependency for FastAPI routes
def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    The session factory is created in the application lifespan and kept
    on ``app.state``.

    Yields:
        Session: SQLAlchemy database session

    Example:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.query(Item).all()
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
