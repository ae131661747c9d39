"""
Cooldown Store

Append-only log of accepted views, partitioned by subject kind. Answers
whether an identity has viewed a subject since a given instant.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from viewtrack.constants import SubjectKind
from viewtrack.services.subjects import get_subject_tables
from viewtrack.utils.storage import run_store_operation

logger = logging.getLogger(__name__)


class CooldownStore:
    """View event log for one subject kind"""

    def __init__(self, db: AsyncSession, kind: SubjectKind):
        self.db = db
        self.tables = get_subject_tables(kind)

    async def has_recent_event(self, subject_id: int, identity: str, window_start: datetime) -> bool:
        """
        Check whether the identity viewed the subject at or after window_start.

        Args:
            subject_id: Article or forum post ID
            identity: Resolved client identity
            window_start: Start of the cooldown window (now - W)

        Returns:
            True if at least one event falls inside the window
        """
        event = self.tables.event_model
        query = (
            select(event.id)
            .where(
                and_(
                    self.tables.event_subject == subject_id,
                    event.viewer_ip == identity,
                    event.viewed_at >= window_start,
                )
            )
            .limit(1)
        )
        result = await run_store_operation(self.db, "has_recent_event", self.db.execute(query))
        return result.first() is not None

    async def record_event(self, subject_id: int, identity: str, occurred_at: datetime | None = None) -> None:
        """Insert a view event and commit it so it survives a later counter failure."""
        event = self.tables.event_model(
            **{self.tables.event_subject_column: subject_id},
            viewer_ip=identity,
            viewed_at=occurred_at or datetime.now(timezone.utc),
        )
        self.db.add(event)
        await run_store_operation(self.db, "record_event", self.db.commit())
        logger.debug(f"Recorded {self.tables.kind.value} view event for {subject_id} from {identity}")
