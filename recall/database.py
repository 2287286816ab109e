"""
Recall — Database Engine
SQLAlchemy setup. Works with SQLite (dev, tests) and PostgreSQL (prod).
"""

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from recall.config import DATABASE_URL, RESET_DATABASE

logger = logging.getLogger("recall.database")


# ─── Engine Setup ────────────────────────────────────────────────────────────

_is_sqlite = DATABASE_URL.startswith("sqlite")

if _is_sqlite:
    # One shared connection; also keeps "sqlite://" in-memory DBs alive
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Test connections before use
        echo=False,
    )


# ─── Session Factory ─────────────────────────────────────────────────────────

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# ─── Base Class ──────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ─── Dependency ──────────────────────────────────────────────────────────────

def get_db():
    """FastAPI dependency: yields a database session, auto-closes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables. Called once at startup."""
    # Import models so they register on Base.metadata
    from recall import models  # noqa: F401

    if RESET_DATABASE:
        logger.warning("RESET_DATABASE=true, dropping all tables")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
