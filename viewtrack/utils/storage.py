import asyncio
import contextlib
import logging
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from viewtrack.config import settings
from viewtrack.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_store_operation(
    db: AsyncSession,
    operation: str,
    awaitable: Awaitable[T],
    timeout: float | None = None,
) -> T:
    """
    Await a store call, mapping backend faults and timeouts to StorageUnavailableError.

    The operation is never retried here: a retried insert could duplicate a view.
    """
    timeout = settings.store_timeout_seconds if timeout is None else timeout
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except (SQLAlchemyError, asyncio.TimeoutError, OSError) as e:
        logger.warning(f"Store operation '{operation}' failed: {e!r}")
        with contextlib.suppress(SQLAlchemyError, OSError):
            await db.rollback()
        raise StorageUnavailableError(operation=operation) from e
