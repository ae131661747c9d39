"""
View Tracking Routes

Entry points called by article and forum pages after they render. Every
failure is converted to a response here; nothing propagates to the page.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from viewtrack.config import settings
from viewtrack.constants import SubjectKind
from viewtrack.database import get_db
from viewtrack.exception_handlers import INTERNAL_ERROR_MESSAGE, create_error_response
from viewtrack.exceptions import InvalidRequestError
from viewtrack.middleware.rate_limit import limiter
from viewtrack.schemas.views import (
    ArticleViewCount,
    ArticleViewRequest,
    ErrorResponse,
    ForumViewCount,
    ForumViewRequest,
    ViewResult,
)
from viewtrack.services.view_service import ViewService, get_view_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Views"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed subject id"},
    500: {"model": ErrorResponse, "description": "Unhandled failure"},
}


async def _record(
    request: Request,
    service: ViewService,
    db: AsyncSession,
    kind: SubjectKind,
    raw_subject_id,
) -> ViewResult | JSONResponse:
    forwarded_for = request.headers.get(settings.forwarded_for_header)
    try:
        return await service.record_view(db, kind, raw_subject_id, forwarded_for)
    except InvalidRequestError as e:
        return create_error_response(status.HTTP_400_BAD_REQUEST, e.message)
    except Exception:
        logger.error(f"Error tracking {kind.value} view", exc_info=True, extra={"path": request.url.path})
        return create_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


@router.post("/views", response_model=ViewResult, response_model_exclude_none=True, responses=ERROR_RESPONSES)
@limiter.limit(settings.view_rate_limit)
async def record_article_view(
    request: Request,
    payload: ArticleViewRequest | None = None,
    service: ViewService = Depends(get_view_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Count a view of an article.

    At most one view per client per article is counted within the cooldown
    window; repeats answer `{"counted": false}`.
    """
    raw_id = payload.articleId if payload else None
    return await _record(request, service, db, SubjectKind.ARTICLE, raw_id)


@router.post("/forum-views", response_model=ViewResult, response_model_exclude_none=True, responses=ERROR_RESPONSES)
@limiter.limit(settings.view_rate_limit)
async def record_forum_view(
    request: Request,
    payload: ForumViewRequest | None = None,
    service: ViewService = Depends(get_view_service),
    db: AsyncSession = Depends(get_db),
):
    """Count a view of a forum post. Same cooldown rules as articles."""
    raw_id = payload.postId if payload else None
    return await _record(request, service, db, SubjectKind.FORUM_POST, raw_id)


@router.get("/views/{article_id}", response_model=ArticleViewCount)
async def get_article_views(
    article_id: int,
    service: ViewService = Depends(get_view_service),
    db: AsyncSession = Depends(get_db),
):
    """Get the current view total of an article."""
    views = await service.get_view_count(db, SubjectKind.ARTICLE, article_id)
    return ArticleViewCount(articleId=article_id, views=views)


@router.get("/forum-views/{post_id}", response_model=ForumViewCount)
async def get_forum_post_views(
    post_id: int,
    service: ViewService = Depends(get_view_service),
    db: AsyncSession = Depends(get_db),
):
    """Get the current view total of a forum post."""
    views = await service.get_view_count(db, SubjectKind.FORUM_POST, post_id)
    return ForumViewCount(postId=post_id, views=views)
