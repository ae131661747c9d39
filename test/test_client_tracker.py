"""
Tests for the client-side view guard and tracker client
"""

import asyncio
import json

import httpx
import pytest
from httpx import ASGITransport
from utils.mock_utils import FakeMillisClock, create_test_article, get_article_views

from viewtrack.client import ClientViewGuard, PageVisit, ViewTrackerClient
from viewtrack.config import settings
from viewtrack.constants import SubjectKind


@pytest.fixture
def millis_clock() -> FakeMillisClock:
    return FakeMillisClock()


@pytest.fixture
def guard(millis_clock) -> ClientViewGuard:
    return ClientViewGuard(storage={}, cooldown_minutes=30, clock=millis_clock)


class RecordingTransport:
    """Builds an httpx.MockTransport that records every request"""

    def __init__(self, status_code: int = 200, payload: dict | None = None):
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.payload = payload if payload is not None else {"counted": True}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url="http://site.test/api")


class TestClientViewGuard:
    def test_storage_keys(self):
        assert ClientViewGuard.storage_key(SubjectKind.ARTICLE, 42) == "viewed_42"
        assert ClientViewGuard.storage_key(SubjectKind.FORUM_POST, 42) == "forum_viewed_42"

    def test_first_claim_stamps_storage(self, guard, millis_clock):
        assert guard.claim(SubjectKind.ARTICLE, 42) is True
        assert guard.storage["viewed_42"] == str(millis_clock.now_ms)

    def test_claim_suppressed_within_window(self, guard, millis_clock):
        guard.claim(SubjectKind.ARTICLE, 42)
        millis_clock.advance(minutes=29)

        assert guard.claim(SubjectKind.ARTICLE, 42) is False

    def test_claim_allowed_after_window(self, guard, millis_clock):
        guard.claim(SubjectKind.ARTICLE, 42)
        millis_clock.advance(minutes=30)

        assert guard.claim(SubjectKind.ARTICLE, 42) is True

    def test_suppressed_claim_keeps_original_stamp(self, guard, millis_clock):
        guard.claim(SubjectKind.ARTICLE, 42)
        first_stamp = guard.storage["viewed_42"]
        millis_clock.advance(minutes=10)

        guard.claim(SubjectKind.ARTICLE, 42)

        assert guard.storage["viewed_42"] == first_stamp

    def test_subjects_are_independent(self, guard):
        assert guard.claim(SubjectKind.ARTICLE, 1) is True
        assert guard.claim(SubjectKind.ARTICLE, 2) is True
        assert guard.claim(SubjectKind.FORUM_POST, 1) is True

    def test_unreadable_entry_is_ignored(self, guard):
        guard.storage["viewed_42"] = "garbage"

        assert guard.is_suppressed(SubjectKind.ARTICLE, 42) is False
        assert guard.claim(SubjectKind.ARTICLE, 42) is True

    def test_shared_storage_across_guards(self, millis_clock):
        shared: dict[str, str] = {}
        first_tab = ClientViewGuard(storage=shared, clock=millis_clock)
        second_tab = ClientViewGuard(storage=shared, clock=millis_clock)

        assert first_tab.claim(SubjectKind.ARTICLE, 7) is True
        assert second_tab.claim(SubjectKind.ARTICLE, 7) is False

    def test_default_window_follows_settings(self, millis_clock, monkeypatch):
        monkeypatch.setattr(settings, "view_cooldown_minutes", 10)
        guard = ClientViewGuard(storage={}, clock=millis_clock)

        guard.claim(SubjectKind.ARTICLE, 42)
        millis_clock.advance(minutes=10)

        assert guard.cooldown_ms == 10 * 60 * 1000
        assert guard.claim(SubjectKind.ARTICLE, 42) is True

    def test_tracker_guard_uses_configured_window(self, monkeypatch):
        monkeypatch.setattr(settings, "view_cooldown_minutes", 45)
        tracker = ViewTrackerClient(http_client=RecordingTransport().client())

        assert tracker.guard.cooldown_ms == 45 * 60 * 1000


class TestPageVisit:
    async def test_track_sends_one_request(self, guard):
        transport = RecordingTransport()
        async with ViewTrackerClient(guard=guard, http_client=transport.client()) as tracker:
            visit = tracker.visit(SubjectKind.ARTICLE, 42)

            assert await visit.track() is True

        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/views"
        assert json.loads(request.content) == {"articleId": 42}

    async def test_repeated_track_on_same_visit_is_latched(self, millis_clock):
        # Short cooldown so only the per-visit latch can suppress the second call
        guard = ClientViewGuard(storage={}, cooldown_minutes=1, clock=millis_clock)
        transport = RecordingTransport()
        tracker = ViewTrackerClient(guard=guard, http_client=transport.client())
        visit = tracker.visit(SubjectKind.ARTICLE, 42)

        assert await visit.track() is True
        millis_clock.advance(minutes=5)
        assert await visit.track() is False

        assert visit.tracked is True
        assert len(transport.requests) == 1

    async def test_new_visit_within_window_is_suppressed(self, guard, millis_clock):
        transport = RecordingTransport()
        tracker = ViewTrackerClient(guard=guard, http_client=transport.client())

        await tracker.visit(SubjectKind.FORUM_POST, 9).track()
        millis_clock.advance(minutes=5)
        sent = await tracker.visit(SubjectKind.FORUM_POST, 9).track()

        assert sent is False
        assert len(transport.requests) == 1
        assert transport.requests[0].url.path == "/api/forum-views"
        assert json.loads(transport.requests[0].content) == {"postId": 9}

    async def test_new_visit_after_window_is_sent(self, guard, millis_clock):
        transport = RecordingTransport()
        tracker = ViewTrackerClient(guard=guard, http_client=transport.client())

        await tracker.visit(SubjectKind.ARTICLE, 42).track()
        millis_clock.advance(minutes=31)
        await tracker.visit(SubjectKind.ARTICLE, 42).track()

        assert len(transport.requests) == 2


class TestViewTrackerClient:
    async def test_send_view_returns_result(self, guard):
        transport = RecordingTransport(payload={"counted": False, "message": "View already counted recently"})
        tracker = ViewTrackerClient(guard=guard, http_client=transport.client())

        result = await tracker.send_view(SubjectKind.ARTICLE, 42)

        assert result is not None
        assert result.counted is False

    async def test_server_error_is_swallowed(self, guard):
        transport = RecordingTransport(status_code=500, payload={"error": "Internal error"})
        tracker = ViewTrackerClient(guard=guard, http_client=transport.client())

        assert await tracker.send_view(SubjectKind.ARTICLE, 42) is None
        assert len(transport.requests) == 1

    async def test_network_error_is_swallowed_and_not_retried(self, guard):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://site.test")
        tracker = ViewTrackerClient(guard=guard, http_client=http_client)

        visit = tracker.visit(SubjectKind.ARTICLE, 42)

        assert await visit.track() is True
        assert len(calls) == 1

    async def test_track_in_background(self, guard):
        transport = RecordingTransport()
        tracker = ViewTrackerClient(guard=guard, http_client=transport.client())

        task = tracker.track_in_background(tracker.visit(SubjectKind.ARTICLE, 5))
        assert isinstance(task, asyncio.Task)
        await tracker.aclose()

        assert task.done()
        assert task.result() is True
        assert len(transport.requests) == 1

    async def test_visit_factory(self, guard):
        tracker = ViewTrackerClient(guard=guard, http_client=RecordingTransport().client())

        visit = tracker.visit("forum_post", "12")

        assert isinstance(visit, PageVisit)
        assert visit.kind is SubjectKind.FORUM_POST

    async def test_end_to_end_against_app(self, app, test_db):
        article = await create_test_article(test_db, views=10)
        http_client = httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers={"X-Forwarded-For": "203.0.113.7"},
        )

        async with ViewTrackerClient(http_client=http_client) as tracker:
            assert await tracker.visit(SubjectKind.ARTICLE, article.id).track() is True
            assert await tracker.visit(SubjectKind.ARTICLE, article.id).track() is False
            # A different session bypasses the client guard; the server still deduplicates
            result = await tracker.send_view(SubjectKind.ARTICLE, article.id)

        await http_client.aclose()

        assert result is not None
        assert result.counted is False
        assert await get_article_views(test_db, article.id) == 11
