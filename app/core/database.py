import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_settings
from app.core.errors import StorageError
from app.models.immutability import register_immutability_listeners

logger = logging.getLogger(__name__)


@lru_cache()
def get_engine() -> Engine:
    """
    Main SQLAlchemy engine, built on first use from DATABASE_URL.
    """
    settings = get_settings()
    url = str(settings.database_url)
    kwargs = {}
    if not url.startswith("sqlite"):
        kwargs.update(pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
    logger.info("Creating database engine env=%s", settings.app_env)
    return create_engine(
        url,
        future=True,
        pool_pre_ping=True,
        echo=settings.sql_echo,
        **kwargs,
    )


@lru_cache()
def get_session_factory() -> sessionmaker:
    register_immutability_listeners()
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=get_engine(),
        future=True,
    )


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session.

    The session is request-scoped; each service workflow opens its own
    unit of work on it through atomic().
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Generator[Session, None, None]:
    """
    Run a group of writes as one all-or-nothing unit of work.

    Usage:
        with atomic(db):
            db.add(...)
            bed.status = ...

    Commits when the block exits cleanly. Any exception rolls back every
    write made in the block; SQLAlchemy failures are re-raised as
    StorageError, domain errors propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Unit of work rolled back after storage failure")
        raise StorageError("Database operation failed.") from exc
    except Exception:
        db.rollback()
        raise
