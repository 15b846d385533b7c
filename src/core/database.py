# src/core/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
from datetime import datetime, timezone
import logging
from .config import settings

logger = logging.getLogger(__name__)

def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared connection so an in-memory database is visible to every session
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"pool_pre_ping": True}

def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite only enforces FOREIGN KEY and ON DELETE CASCADE when asked to, per connection."""
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

try:
    engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
    if engine.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base = declarative_base()
    logger.info("Database engine and session created successfully.")
except Exception as e:
    logger.error(f"Failed to create database engine: {e}", exc_info=True)
    raise

@contextmanager
def get_db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db() -> None:
    """Creates the users and sessions tables if they do not exist yet."""
    # Models must be imported so Base.metadata knows about them
    from src.users import models as _user_models  # noqa: F401
    from src.sessions import models as _session_models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables are in place.")

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
