from .article import Article
from .forum_post import ForumPost
from .view_event import ArticleView, ForumPostView

__all__ = [
    "Article",
    "ArticleView",
    "ForumPost",
    "ForumPostView",
]
