import os
import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.models import Base

logger = logging.getLogger(__name__)

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///carematch.db")

engine: Optional[Engine] = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def configure_database(url: Optional[str] = None, create_tables: bool = False) -> Engine:
    """
    Bind SessionLocal to a database.

    In-memory SQLite gets a StaticPool so every session (and worker
    thread) sees the same database.
    """
    global engine
    url = url or DATABASE_URL
    if url.startswith("sqlite") and ":memory:" in url:
        engine = create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    elif url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(url, pool_pre_ping=True)
    SessionLocal.configure(bind=engine)

    if create_tables:
        Base.metadata.create_all(engine)
    logger.debug(f"Database configured ({engine.url.get_backend_name()})")
    return engine


def get_engine() -> Engine:
    if engine is None:
        return configure_database()
    return engine

