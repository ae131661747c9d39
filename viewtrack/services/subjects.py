"""
Subject registry

Maps each SubjectKind to the table holding its denormalized counter and the
event log partition used for cooldown checks.
"""

from dataclasses import dataclass
from typing import Any

from viewtrack.constants import SubjectKind
from viewtrack.models import Article, ArticleView, ForumPost, ForumPostView


@dataclass(frozen=True)
class SubjectTables:
    kind: SubjectKind
    label: str
    id_field: str
    subject_model: Any
    counter_column: str
    event_model: Any
    event_subject_column: str

    @property
    def counter(self):
        return getattr(self.subject_model, self.counter_column)

    @property
    def event_subject(self):
        return getattr(self.event_model, self.event_subject_column)


SUBJECTS: dict[SubjectKind, SubjectTables] = {
    SubjectKind.ARTICLE: SubjectTables(
        kind=SubjectKind.ARTICLE,
        label="Article",
        id_field="articleId",
        subject_model=Article,
        counter_column="views",
        event_model=ArticleView,
        event_subject_column="article_id",
    ),
    SubjectKind.FORUM_POST: SubjectTables(
        kind=SubjectKind.FORUM_POST,
        label="Forum post",
        id_field="postId",
        subject_model=ForumPost,
        counter_column="views_count",
        event_model=ForumPostView,
        event_subject_column="post_id",
    ),
}


def get_subject_tables(kind: SubjectKind) -> SubjectTables:
    return SUBJECTS[SubjectKind(kind)]
