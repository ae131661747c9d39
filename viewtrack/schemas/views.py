from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

# Subject ids arrive from page scripts as numbers or numeric strings; the
# service layer validates them so a bad id answers 400 rather than 422.
# Strict types keep booleans and floats from being coerced into ids.
RawSubjectId = Optional[Union[StrictInt, StrictStr]]


class ArticleViewRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    articleId: RawSubjectId = Field(None, description="ID of the article being viewed")


class ForumViewRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    postId: RawSubjectId = Field(None, description="ID of the forum post being viewed")


class ViewResult(BaseModel):
    model_config = ConfigDict(json_schema_extra={"example": {"counted": True}})

    counted: bool = Field(..., description="Whether this view advanced the counter")
    message: Optional[str] = Field(None, description="Why the view was not counted")


class ArticleViewCount(BaseModel):
    articleId: int
    views: int


class ForumViewCount(BaseModel):
    postId: int
    views: int


class ErrorResponse(BaseModel):
    error: str
