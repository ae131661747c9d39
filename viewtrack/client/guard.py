"""
Client-side view guard

Suppresses redundant calls to the view entry points from one browsing
session. This is a request-volume optimization only: the server keeps its
own cooldown and stays correct if this state is cleared or missing.
"""

import time
from collections.abc import Callable, MutableMapping
from typing import Optional

from viewtrack.config import settings
from viewtrack.constants import SubjectKind

STORAGE_KEY_PREFIXES = {
    SubjectKind.ARTICLE: "viewed_",
    SubjectKind.FORUM_POST: "forum_viewed_",
}


def _now_ms() -> int:
    return int(time.time() * 1000)


class ClientViewGuard:
    """
    Per-session record of when each subject was last reported.

    `storage` plays the role of the browser's session storage: any mutable
    mapping of string keys to epoch-millisecond strings. Pass a shared,
    persistent mapping to share the window across tabs.
    """

    def __init__(
        self,
        storage: Optional[MutableMapping[str, str]] = None,
        cooldown_minutes: Optional[int] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.storage = {} if storage is None else storage
        self.cooldown_ms = (cooldown_minutes or settings.view_cooldown_minutes) * 60 * 1000
        self.clock = clock

    @staticmethod
    def storage_key(kind: SubjectKind, subject_id) -> str:
        return f"{STORAGE_KEY_PREFIXES[SubjectKind(kind)]}{subject_id}"

    def last_reported(self, kind: SubjectKind, subject_id) -> Optional[int]:
        raw = self.storage.get(self.storage_key(kind, subject_id))
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            # Unreadable entries are treated as absent
            return None

    def is_suppressed(self, kind: SubjectKind, subject_id) -> bool:
        last = self.last_reported(kind, subject_id)
        return last is not None and self.clock() - last < self.cooldown_ms

    def claim(self, kind: SubjectKind, subject_id) -> bool:
        """
        Decide whether this view should be reported.

        Returns False inside the cooldown window. Otherwise stamps the
        subject with the current time and returns True.
        """
        if self.is_suppressed(kind, subject_id):
            return False
        self.storage[self.storage_key(kind, subject_id)] = str(self.clock())
        return True
