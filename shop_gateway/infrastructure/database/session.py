"""Database engine and per-request sessions for the shop store"""

from typing import Any, Dict
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from shop_gateway.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Engine keyword arguments for the configured backend.

    SQLite (local runs, tests) is shared across FastAPI's worker threads and
    gets no pool sizing. Server databases get a bounded pool that drops stale
    connections after an hour.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """One session per request, closed when the request ends"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
