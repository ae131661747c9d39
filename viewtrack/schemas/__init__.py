from .views import (
    ArticleViewCount,
    ArticleViewRequest,
    ErrorResponse,
    ForumViewCount,
    ForumViewRequest,
    ViewResult,
)

# Define the public API of this module
__all__ = [
    "ArticleViewCount",
    "ArticleViewRequest",
    "ErrorResponse",
    "ForumViewCount",
    "ForumViewRequest",
    "ViewResult",
]
