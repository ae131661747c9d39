"""View event log models used for cooldown deduplication.

Rows are append-only and carry no foreign key to the subject: a view of a
missing subject is still logged so the cooldown holds. Retention/pruning
happens outside this service.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String

from viewtrack.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArticleView(Base):
    __tablename__ = "article_views"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    article_id = Column(Integer, nullable=False)
    viewer_ip = Column(String(255), nullable=False)
    viewed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (Index("idx_article_views_dedup", "article_id", "viewer_ip", "viewed_at"),)


class ForumPostView(Base):
    __tablename__ = "forum_post_views"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    post_id = Column(Integer, nullable=False)
    viewer_ip = Column(String(255), nullable=False)
    viewed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (Index("idx_forum_post_views_dedup", "post_id", "viewer_ip", "viewed_at"),)
