from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(300), nullable=False)
    content = Column(Text, nullable=False)
    author = Column(String(150), nullable=False, default="Anonymous")
    votes = Column(Integer, nullable=False, default=0, index=True)
    is_answered = Column(Boolean, nullable=False, default=False)
    answered_by = Column(String(150), nullable=True)
    answered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    replies = relationship(
        "Reply", back_populates="post", cascade="all, delete-orphan", order_by="Reply.id"
    )
    voters = relationship("PostVoter", back_populates="post", cascade="all, delete-orphan")

    # Per-viewer flag, set by the store on reads
    has_upvoted = False

    @property
    def upvoted_by(self) -> list[str]:
        return [v.voter_id for v in self.voters]


class Reply(Base):
    __tablename__ = "replies"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    author = Column(String(150), nullable=False, default="Anonymous")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    post = relationship("Post", back_populates="replies")


class PostVoter(Base):
    """One row per authenticated identity that upvoted a post."""

    __tablename__ = "post_voters"
    __table_args__ = (UniqueConstraint("post_id", "voter_id", name="uq_post_voter"),)

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    voter_id = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    post = relationship("Post", back_populates="voters")
