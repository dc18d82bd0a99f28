"""
Bounded retry for transient store failures.

A state-changing store call is attempted at most twice. If the second
attempt also hits a transient failure it surfaces as Unavailable.
"""

import asyncio
import logging
from functools import wraps
from typing import Optional

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.config import settings
from travelcrm.errors import Unavailable

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    ConnectionError,
    TimeoutError,
)


async def _reload_instances(session: AsyncSession) -> None:
    for instance in list(session.identity_map.values()):
        await session.refresh(instance)


def with_retry(max_attempts: int = 2, delay: Optional[float] = None):
    """
    Decorator for async store functions.

    If the first positional argument is an AsyncSession it is rolled back
    before the next attempt so the retry starts from a clean transaction.
    Rollback expires every loaded instance, so those are reloaded too and
    snapshots held by the caller (the current user) stay readable.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            wait = settings.store_retry_delay if delay is None else delay

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except TRANSIENT_ERRORS as e:
                    session = args[0] if args and isinstance(args[0], AsyncSession) else None
                    if session is not None:
                        await session.rollback()
                    if attempt < max_attempts:
                        logger.warning(
                            f"{func.__name__} attempt {attempt} failed ({e.__class__.__name__}), "
                            f"retrying in {wait}s..."
                        )
                        await asyncio.sleep(wait)
                        if session is not None:
                            await _reload_instances(session)
                        continue
                    logger.error(f"{func.__name__} failed after {max_attempts} attempts: {e}")
                    raise Unavailable(operation=func.__name__) from e
        return wrapper
    return decorator
