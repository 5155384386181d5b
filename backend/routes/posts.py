"""Post, reply, upvote, and answered-toggle routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from auth import Identity
from deps import get_identity, get_mutation_service, get_post_store
from errors import NotFoundError, ValidationError
from mutation_service import MutationService
from post_store import PostStore
from schemas import PostCreate, PostResponse, ReplyCreate

router = APIRouter(prefix="/api", tags=["posts"])


@router.get("/posts", response_model=List[PostResponse])
async def get_posts(
    sort: str = "date",
    search: str = "",
    q: str = "",
    identity: Optional[Identity] = Depends(get_identity),
    store: PostStore = Depends(get_post_store),
):
    posts = store.find(search=search or q, sort=sort, identity=identity)
    return [PostResponse.model_validate(post) for post in posts]


# must be registered before /posts/{post_id}
@router.get("/posts/search")
async def search_posts(
    q: str = "",
    health: str = "",
    identity: Optional[Identity] = Depends(get_identity),
    store: PostStore = Depends(get_post_store),
):
    if health == "check":
        return {"status": "ok", "message": "Search endpoint is healthy"}
    if not q.strip():
        raise ValidationError("Search term is required")
    posts = store.find(search=q, sort="date", identity=identity)
    return [PostResponse.model_validate(post).model_dump(mode="json", by_alias=True) for post in posts]


@router.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    store: PostStore = Depends(get_post_store),
):
    post = store.find_by_id(post_id, identity)
    if post is None:
        raise NotFoundError()
    return PostResponse.model_validate(post)


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    identity: Optional[Identity] = Depends(get_identity),
    service: MutationService = Depends(get_mutation_service),
):
    post = service.create_post(post_data.title, post_data.content, post_data.author, identity)
    return PostResponse.model_validate(post)


@router.post("/posts/{post_id}/reply", response_model=PostResponse)
async def add_reply(
    post_id: str,
    reply_data: ReplyCreate,
    identity: Optional[Identity] = Depends(get_identity),
    service: MutationService = Depends(get_mutation_service),
):
    post = service.add_reply(post_id, reply_data.content, reply_data.author, identity)
    return PostResponse.model_validate(post)


@router.post("/posts/{post_id}/upvote", response_model=PostResponse)
async def upvote_post(
    post_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    service: MutationService = Depends(get_mutation_service),
):
    post = service.upvote(post_id, identity)
    return PostResponse.model_validate(post)


@router.post("/posts/{post_id}/mark-answered", response_model=PostResponse)
async def mark_answered(
    post_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    service: MutationService = Depends(get_mutation_service),
):
    post = service.toggle_answered(post_id, identity)
    return PostResponse.model_validate(post)
