from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Post Schemas
class PostCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None


class ReplyCreate(CamelModel):
    content: Optional[str] = None
    author: Optional[str] = None


class ReplyResponse(CamelModel):
    content: str
    author: str
    created_at: datetime


class PostResponse(CamelModel):
    id: int
    title: str
    content: str
    author: str
    votes: int
    upvoted_by: List[str] = Field(default_factory=list)
    is_answered: bool
    answered_by: Optional[str] = None
    answered_at: Optional[datetime] = None
    replies: List[ReplyResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    has_upvoted: bool = False


def post_snapshot(post) -> dict:
    """Viewer-independent JSON snapshot of a post, as pushed on the real-time channel."""
    return PostResponse.model_validate(post).model_dump(mode="json", by_alias=True, exclude={"has_upvoted"})


def reply_snapshot(reply) -> dict:
    return ReplyResponse.model_validate(reply).model_dump(mode="json", by_alias=True)


# AI Schemas
class SmartReplyRequest(CamelModel):
    post_id: Optional[Union[int, str]] = None
    context: Optional[str] = ""


class AnalyzeContentRequest(CamelModel):
    content: Optional[str] = None


class SuggestionsResponse(BaseModel):
    suggestions: List[str]


class SmartRepliesResponse(BaseModel):
    replies: List[str]


class AnalysisResponse(BaseModel):
    analysis: dict[str, Any]


class SimilarPostsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    similar_posts: List[dict[str, Any]] = Field(alias="similarPosts")


class SimilarQuestionsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    similar_questions: List[dict[str, Any]] = Field(alias="similarQuestions")


class SummaryResponse(BaseModel):
    summary: dict[str, Any]
