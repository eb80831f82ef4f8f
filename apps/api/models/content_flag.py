"""ContentFlag model for moderation reports on posts and comments."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship
import uuid

from database import Base, utcnow


FLAG_STATUSES = ("pending", "reviewed", "dismissed")


class ContentFlag(Base):
    """
    User report against a post (comment_id is NULL) or against one of its comments.

    Status moves from pending to reviewed or dismissed exactly once.
    """

    __tablename__ = "content_flags"
    __table_args__ = (
        # One pending report per user and target.
        Index(
            "uq_content_flags_pending_post",
            "user_id",
            "post_id",
            unique=True,
            sqlite_where=text("status = 'pending' AND comment_id IS NULL"),
            postgresql_where=text("status = 'pending' AND comment_id IS NULL"),
        ),
        Index(
            "uq_content_flags_pending_comment",
            "user_id",
            "comment_id",
            unique=True,
            sqlite_where=text("status = 'pending' AND comment_id IS NOT NULL"),
            postgresql_where=text("status = 'pending' AND comment_id IS NOT NULL"),
        ),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(String, ForeignKey("posts.id"), nullable=False, index=True)
    comment_id = Column(String, ForeignKey("comments.id"), nullable=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="pending", index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    reporter = relationship("User")
    comment = relationship("Comment", back_populates="flags")
