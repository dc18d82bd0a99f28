"""Database session and store helpers."""

from travelcrm.db.retry import with_retry
from travelcrm.db.session import (
    AsyncSessionLocal,
    engine,
    get_db,
    get_db_context,
    get_session_factory,
)

__all__ = [
    "AsyncSessionLocal",
    "engine",
    "get_db",
    "get_db_context",
    "get_session_factory",
    "with_retry",
]
