"""
Counter Store

Maintains the denormalized view total stored on the subject row
(articles.views, forum_posts.views_count).
"""

import logging

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from viewtrack.config import settings
from viewtrack.constants import SubjectKind
from viewtrack.exceptions import SubjectNotFoundError
from viewtrack.services.subjects import get_subject_tables
from viewtrack.utils.storage import run_store_operation

logger = logging.getLogger(__name__)


class CounterStore:
    """Denormalized view counter for one subject kind"""

    def __init__(self, db: AsyncSession, kind: SubjectKind, atomic: bool | None = None):
        self.db = db
        self.tables = get_subject_tables(kind)
        self.atomic = settings.atomic_counter_increment if atomic is None else atomic

    async def get_count(self, subject_id: int) -> int:
        """Read the current total, treating a NULL counter as 0."""
        model = self.tables.subject_model
        query = select(model.id, self.tables.counter).where(model.id == subject_id)
        result = await run_store_operation(self.db, "get_count", self.db.execute(query))
        row = result.first()
        if row is None:
            raise SubjectNotFoundError(self.tables.label, subject_id)
        return row[1] or 0

    async def increment_counter(self, subject_id: int) -> int:
        """
        Add one to the subject's counter.

        Returns:
            The new count

        Raises:
            SubjectNotFoundError: the subject row does not exist
            StorageUnavailableError: the store failed or timed out
        """
        if self.atomic:
            return await self._increment_atomic(subject_id)
        return await self._increment_read_then_write(subject_id)

    async def _increment_atomic(self, subject_id: int) -> int:
        model = self.tables.subject_model
        counter = self.tables.counter
        statement = (
            update(model)
            .where(model.id == subject_id)
            .values({self.tables.counter_column: func.coalesce(counter, 0) + 1})
            .execution_options(synchronize_session=False)
        )
        result = await run_store_operation(self.db, "increment_counter", self.db.execute(statement))
        if result.rowcount == 0:
            await self.db.rollback()
            raise SubjectNotFoundError(self.tables.label, subject_id)

        new_count = await self.get_count(subject_id)
        await run_store_operation(self.db, "increment_counter", self.db.commit())
        return new_count

    async def _increment_read_then_write(self, subject_id: int) -> int:
        # Fallback for stores without a server-side increment. Concurrent
        # increments on the same row can lose updates.
        model = self.tables.subject_model
        query = select(model).where(model.id == subject_id).execution_options(populate_existing=True)
        result = await run_store_operation(self.db, "increment_counter", self.db.execute(query))
        subject = result.scalars().first()
        if subject is None:
            raise SubjectNotFoundError(self.tables.label, subject_id)

        new_count = (getattr(subject, self.tables.counter_column) or 0) + 1
        setattr(subject, self.tables.counter_column, new_count)
        await run_store_operation(self.db, "increment_counter", self.db.commit())
        return new_count
