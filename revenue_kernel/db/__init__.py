"""Database layer: declarative base, engine lifecycle and session scope."""

from revenue_kernel.db.base import ID_LENGTH, Base, TrackedBase
from revenue_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "ID_LENGTH",
    "Base",
    "TrackedBase",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
