"""Write path for posts: create, reply, upvote, answered toggle.

Every operation validates, persists through the store, then emits change
events. Nothing here deduplicates retried requests; a retried upvote by an
anonymous client counts twice.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from auth import Identity
from errors import AuthRequiredError, ForbiddenError, NotFoundError, ValidationError
from events import NEW_POST, NEW_REPLY, POST_UPDATED, EventSink, ForumEvent
from models import Post, Reply, utcnow
from post_store import PostStore, annotate
from schemas import post_snapshot, reply_snapshot

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def resolve_author(identity: Optional[Identity], author: Optional[str]) -> str:
    if identity is not None:
        return identity.display_name
    return _clean(author) or ANONYMOUS


class MutationService:
    def __init__(
        self,
        store: PostStore,
        emit: EventSink,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.emit = emit
        self.clock = clock

    def _require_post(self, post_id, identity: Optional[Identity] = None) -> Post:
        post = self.store.find_by_id(post_id, identity)
        if post is None:
            raise NotFoundError()
        return post

    def _post_updated(self, post: Post) -> None:
        self.emit(ForumEvent(POST_UPDATED, post_snapshot(post)))

    def create_post(
        self,
        title: Optional[str],
        content: Optional[str],
        author: Optional[str] = None,
        identity: Optional[Identity] = None,
    ) -> Post:
        title, content = _clean(title), _clean(content)
        if not title or not content:
            raise ValidationError("Title and content are required")

        now = self.clock()
        post = Post(
            title=title,
            content=content,
            author=resolve_author(identity, author),
            votes=0,
            is_answered=False,
            created_at=now,
            updated_at=now,
        )
        post = annotate(self.store.insert(post), identity)
        logger.info("post created id=%s author=%s", post.id, post.author)
        self.emit(ForumEvent(NEW_POST, post_snapshot(post)))
        return post

    def add_reply(
        self,
        post_id,
        content: Optional[str],
        author: Optional[str] = None,
        identity: Optional[Identity] = None,
    ) -> Post:
        post = self._require_post(post_id, identity)
        content = _clean(content)
        if not content:
            raise ValidationError("Reply content is required")

        now = self.clock()
        post.replies.append(Reply(content=content, author=resolve_author(identity, author), created_at=now))
        post.updated_at = now
        post = annotate(self.store.save(post), identity)
        reply = post.replies[-1]
        logger.info("reply added post=%s replies=%d", post.id, len(post.replies))
        self.emit(ForumEvent(NEW_REPLY, {"postId": post.id, "reply": reply_snapshot(reply)}))
        self._post_updated(post)
        return post

    def upvote(self, post_id, identity: Optional[Identity] = None) -> Post:
        post = self._require_post(post_id, identity)
        if identity is not None:
            self.store.add_voter(post, identity.id)
        post = annotate(self.store.increment_votes(post), identity)
        logger.info("post upvoted id=%s votes=%d anonymous=%s", post.id, post.votes, identity is None)
        self._post_updated(post)
        return post

    def toggle_answered(self, post_id, identity: Optional[Identity]) -> Post:
        post = self._require_post(post_id, identity)
        if identity is None:
            raise AuthRequiredError()
        if not identity.is_instructor and identity.display_name != post.author:
            raise ForbiddenError("Only instructors or post authors can mark as answered")

        post.is_answered = not post.is_answered
        if post.is_answered:
            post.answered_by = identity.display_name
            post.answered_at = self.clock()
        else:
            post.answered_by = None
            post.answered_at = None
        post = annotate(self.store.save(post), identity)
        logger.info("post id=%s answered=%s by=%s", post.id, post.is_answered, identity.display_name)
        self._post_updated(post)
        return post
