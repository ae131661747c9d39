"""
View Recording Service

Decides whether a page view counts, logs it and advances the subject's
denormalized counter. At most one view per identity per subject is counted
within the cooldown window.

Known limitation: two concurrent requests from the same identity can both
pass the cooldown check before either event is committed, and both count.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from viewtrack.config import settings
from viewtrack.constants import MAX_SUBJECT_ID, SubjectKind
from viewtrack.exceptions import InvalidRequestError, StorageUnavailableError, SubjectNotFoundError
from viewtrack.schemas.views import ViewResult
from viewtrack.services.cooldown_store import CooldownStore
from viewtrack.services.counter_store import CounterStore
from viewtrack.services.subjects import get_subject_tables
from viewtrack.utils.client_ip import resolve_identity

logger = logging.getLogger(__name__)

ALREADY_COUNTED_MESSAGE = "View already counted recently"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_subject_id(raw_id: Any, field: str) -> int:
    """Coerce a request subject id to a positive int or raise InvalidRequestError."""
    if raw_id is None or raw_id == "" or raw_id == 0:
        raise InvalidRequestError(f"Missing {field}", field=field)

    if isinstance(raw_id, bool):
        raise InvalidRequestError(f"Invalid {field}", field=field)
    if isinstance(raw_id, int):
        subject_id = raw_id
    elif isinstance(raw_id, str) and raw_id.strip().isascii() and raw_id.strip().isdecimal():
        subject_id = int(raw_id.strip())
    else:
        raise InvalidRequestError(f"Invalid {field}", field=field)

    if not 0 < subject_id <= MAX_SUBJECT_ID:
        raise InvalidRequestError(f"Invalid {field}", field=field)
    return subject_id


class ViewService:
    """Service for recording rate-limited views"""

    def __init__(
        self,
        cooldown_minutes: int | None = None,
        clock: Callable[[], datetime] = utcnow,
        atomic_increment: bool | None = None,
    ):
        self.cooldown = timedelta(minutes=cooldown_minutes or settings.view_cooldown_minutes)
        self.clock = clock
        self.atomic_increment = atomic_increment

    def stores(self, db: AsyncSession, kind: SubjectKind) -> tuple[CooldownStore, CounterStore]:
        return CooldownStore(db, kind), CounterStore(db, kind, atomic=self.atomic_increment)

    async def record_view(
        self,
        db: AsyncSession,
        kind: SubjectKind,
        raw_subject_id: Any,
        forwarded_for: str | None = None,
    ) -> ViewResult:
        """
        Record a view of an article or forum post.

        Args:
            db: Database session
            kind: Which subject table the id refers to
            raw_subject_id: Subject id as received from the client
            forwarded_for: Raw forwarding header value, if any

        Returns:
            ViewResult with counted=False when the identity already viewed
            the subject inside the cooldown window

        Raises:
            InvalidRequestError: the subject id is missing or malformed
            StorageUnavailableError: the cooldown check or the event insert failed
        """
        tables = get_subject_tables(kind)
        subject_id = parse_subject_id(raw_subject_id, tables.id_field)
        identity = resolve_identity(forwarded_for)

        now = self.clock()
        window_start = now - self.cooldown

        cooldown_store, counter_store = self.stores(db, kind)

        if await cooldown_store.has_recent_event(subject_id, identity, window_start):
            logger.debug(f"{tables.label} {subject_id} already viewed by {identity}, not counted")
            return ViewResult(counted=False, message=ALREADY_COUNTED_MESSAGE)

        await cooldown_store.record_event(subject_id, identity, occurred_at=now)

        # The event is committed at this point; counter failures are absorbed
        # so the cooldown still applies to the next request.
        try:
            new_count = await counter_store.increment_counter(subject_id)
        except SubjectNotFoundError as e:
            logger.warning(f"View recorded but counter not advanced: {e.message}")
        except StorageUnavailableError as e:
            logger.error(
                f"View recorded but counter increment failed for {tables.label} {subject_id}: {e.message}",
                extra={"operation": e.details.get("operation")},
            )
        else:
            logger.info(f"Counted view of {tables.label} {subject_id} from {identity} (total {new_count})")

        return ViewResult(counted=True)

    async def get_view_count(self, db: AsyncSession, kind: SubjectKind, raw_subject_id: Any) -> int:
        tables = get_subject_tables(kind)
        subject_id = parse_subject_id(raw_subject_id, tables.id_field)
        _, counter_store = self.stores(db, kind)
        return await counter_store.get_count(subject_id)


view_service = ViewService()


def get_view_service() -> ViewService:
    """Dependency returning the shared ViewService."""
    return view_service
