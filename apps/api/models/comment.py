"""Comment model for forum post replies."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
import uuid

from database import Base, utcnow


class Comment(Base):
    """Reply attached to a forum post."""

    __tablename__ = "comments"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(String, ForeignKey("posts.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    post = relationship("Post", back_populates="comments")
    user = relationship("User")
    flags = relationship(
        "ContentFlag",
        back_populates="comment",
        cascade="all, delete-orphan",
        order_by="ContentFlag.created_at",
    )
