"""
Module: revenue_kernel.db.engine
Responsibility:
    Owns the process-wide SQLAlchemy engine and session factory for the
    CRM database that snapshots are read from and segment caches are
    written back to.

Architecture position:
    Kernel > DB. Imports db/base.py; ``create_tables`` / ``drop_tables``
    also import revenue_kernel.models so every table is registered.

Invariants enforced:
    - At most one engine is live; initialising again disposes the old one.
    - SQLite URLs (tests, local exports) share one connection through a
      StaticPool, so an in-memory database outlives individual sessions.
    - Sessions do not expire objects on commit; services keep using the
      rows they just flushed.

Failure modes:
    - RuntimeError from any accessor before ``init_engine_from_url``.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from revenue_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _engine_options(
    database_url: str,
    pool_size: int,
    max_overflow: int,
    pool_recycle: int,
) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": pool_recycle,
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Args:
        database_url: Any SQLAlchemy URL, e.g. ``sqlite:///crm.db``.
        echo: Log every SQL statement.
        pool_size, max_overflow, pool_recycle: QueuePool sizing; ignored
            for SQLite.
    """
    global _engine, _session_factory

    reset_engine()
    _engine = create_engine(
        database_url,
        echo=echo,
        **_engine_options(database_url, pool_size, max_overflow, pool_recycle),
    )
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={
        "dialect": _engine.dialect.name,
        "pool": type(_engine.pool).__name__,
    })
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database engine not initialised; call init_engine_from_url() first")
    return _engine


def get_session() -> Session:
    """New session bound to the current engine."""
    if _session_factory is None:
        raise RuntimeError("Database engine not initialised; call init_engine_from_url() first")
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Commit on success, roll back and re-raise on error, always close.

    Usage:
        with session_scope() as session:
            PortfolioSegmentationService(session, config).refresh_caches([2025])
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create the accounts and estimates tables if they do not exist."""
    import revenue_kernel.models  # noqa: F401
    from revenue_kernel.db.base import Base

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every model table. Test helper."""
    import revenue_kernel.models  # noqa: F401
    from revenue_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine (if any) and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(reset_engine)
