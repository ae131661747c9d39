"""
View tracking client

Async client for the view entry points, used by page-rendering code. Calls
are fire-and-forget: network and server failures are logged and swallowed so
they never reach the page.
"""

import asyncio
import logging
from typing import Optional

import httpx

from viewtrack.client.guard import ClientViewGuard
from viewtrack.constants import SubjectKind
from viewtrack.schemas.views import ViewResult

logger = logging.getLogger(__name__)

ENDPOINTS = {
    SubjectKind.ARTICLE: ("/views", "articleId"),
    SubjectKind.FORUM_POST: ("/forum-views", "postId"),
}


class PageVisit:
    """
    One page view of one subject.

    `track()` fires at most once per visit no matter how often it is called,
    which covers a page handler or effect running twice for the same view.
    """

    def __init__(self, tracker: "ViewTrackerClient", kind: SubjectKind, subject_id):
        self.tracker = tracker
        self.kind = SubjectKind(kind)
        self.subject_id = subject_id
        self.tracked = False

    async def track(self) -> bool:
        """Returns True if a request was sent for this visit."""
        if self.tracked:
            return False
        self.tracked = True

        if not self.tracker.guard.claim(self.kind, self.subject_id):
            logger.debug(f"View of {self.kind.value} {self.subject_id} suppressed by session guard")
            return False

        await self.tracker.send_view(self.kind, self.subject_id)
        return True


class ViewTrackerClient:
    """Client for POST /views and POST /forum-views."""

    def __init__(
        self,
        base_url: str = "",
        guard: Optional[ClientViewGuard] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ):
        self.guard = guard or ClientViewGuard()
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._background: set[asyncio.Task] = set()

    async def __aenter__(self) -> "ViewTrackerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        if self._owns_client:
            await self.http_client.aclose()

    def visit(self, kind: SubjectKind, subject_id) -> PageVisit:
        return PageVisit(self, kind, subject_id)

    async def send_view(self, kind: SubjectKind, subject_id) -> Optional[ViewResult]:
        """
        POST a single view. Never retried and never raises.

        Returns:
            The server's ViewResult, or None when the call failed
        """
        path, field = ENDPOINTS[SubjectKind(kind)]
        try:
            response = await self.http_client.post(path, json={field: subject_id})
            response.raise_for_status()
            return ViewResult.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            logger.warning(f"View tracking for {field}={subject_id} rejected: {e.response.status_code}")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"View tracking for {field}={subject_id} failed: {e!r}")
        return None

    def track_in_background(self, visit: PageVisit) -> asyncio.Task:
        """Schedule `visit.track()` without awaiting it."""
        task = asyncio.create_task(visit.track())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task
