"""Post persistence and query construction over a SQLAlchemy session."""

import logging
from typing import Iterable, List, NoReturn, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from auth import Identity
from errors import ConflictError, StoreError
from models import Post, PostVoter

logger = logging.getLogger(__name__)

SORT_DATE = "date"
SORT_VOTES = "votes"

# ids outside a signed 64-bit INTEGER cannot be bound by the driver
MAX_POST_ID = 2 ** 63 - 1


def _as_post_id(post_id) -> Optional[int]:
    try:
        pid = int(str(post_id).strip())
    except (TypeError, ValueError):
        return None
    if not -MAX_POST_ID - 1 <= pid <= MAX_POST_ID:
        return None
    return pid


def _contains(column, term: str):
    return column.icontains(term, autoescape=True)


def annotate(post: Post, identity: Optional[Identity]) -> Post:
    post.has_upvoted = identity is not None and identity.id in post.upvoted_by
    return post


class PostStore:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Post).options(selectinload(Post.replies), selectinload(Post.voters))

    def _fail(self, action: str, exc: SQLAlchemyError) -> NoReturn:
        self.db.rollback()
        logger.error("store %s failed: %s", action, exc)
        raise StoreError(detail=str(exc)) from exc

    def find(
        self,
        search: str = "",
        sort: str = SORT_DATE,
        identity: Optional[Identity] = None,
    ) -> List[Post]:
        """Posts matching ``search`` in title, content or author, newest first
        (or most voted first with ``sort="votes"``)."""
        query = self._query()
        term = (search or "").strip()
        if term:
            query = query.filter(
                or_(_contains(Post.title, term), _contains(Post.content, term), _contains(Post.author, term))
            )
        if sort == SORT_VOTES:
            query = query.order_by(Post.votes.desc(), Post.created_at.desc(), Post.id.desc())
        else:
            query = query.order_by(Post.created_at.desc(), Post.id.desc())
        try:
            posts = query.all()
        except SQLAlchemyError as exc:
            self._fail("find", exc)
        return [annotate(post, identity) for post in posts]

    def find_by_id(self, post_id, identity: Optional[Identity] = None) -> Optional[Post]:
        pid = _as_post_id(post_id)
        if pid is None:
            return None
        try:
            post = self._query().filter(Post.id == pid).first()
        except SQLAlchemyError as exc:
            self._fail("find_by_id", exc)
        if post is None:
            return None
        return annotate(post, identity)

    def insert(self, post: Post) -> Post:
        try:
            self.db.add(post)
            self.db.commit()
            self.db.refresh(post)
        except SQLAlchemyError as exc:
            self._fail("insert", exc)
        return post

    def save(self, post: Post) -> Post:
        try:
            self.db.commit()
            self.db.refresh(post)
        except SQLAlchemyError as exc:
            self._fail("save", exc)
        return post

    def add_voter(self, post: Post, voter_id: str) -> None:
        """Record ``voter_id`` on the post; a second vote by the same voter is a conflict."""
        if voter_id in post.upvoted_by:
            raise ConflictError("You have already upvoted this post")
        try:
            self.db.add(PostVoter(post_id=post.id, voter_id=voter_id))
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("You have already upvoted this post") from exc
        except SQLAlchemyError as exc:
            self._fail("add_voter", exc)

    def increment_votes(self, post: Post) -> Post:
        """Atomic ``votes = votes + 1`` followed by a commit and reload."""
        try:
            self.db.execute(
                update(Post)
                .where(Post.id == post.id)
                .values(votes=Post.votes + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
            self.db.refresh(post)
        except SQLAlchemyError as exc:
            self._fail("increment_votes", exc)
        return post

    def keyword_matches(self, keywords: Iterable[str], exclude_id=None, limit: int = 5) -> List[Post]:
        """Posts whose title or content contains any keyword, by votes then recency."""
        keywords = [k for k in keywords if k]
        if not keywords:
            return []
        clauses = []
        for keyword in keywords:
            clauses.append(_contains(Post.title, keyword))
            clauses.append(_contains(Post.content, keyword))
        query = self.db.query(Post).filter(or_(*clauses))
        pid = _as_post_id(exclude_id)
        if pid is not None:
            query = query.filter(Post.id != pid)
        try:
            return query.order_by(Post.votes.desc(), Post.created_at.desc(), Post.id.desc()).limit(limit).all()
        except SQLAlchemyError as exc:
            self._fail("keyword_matches", exc)

    def recent(self, exclude_id=None, limit: int = 50) -> List[Post]:
        query = self.db.query(Post)
        pid = _as_post_id(exclude_id)
        if pid is not None:
            query = query.filter(Post.id != pid)
        try:
            return query.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit).all()
        except SQLAlchemyError as exc:
            self._fail("recent", exc)
