"""Concern model for user support requests."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
import uuid

from database import Base, utcnow


CONCERN_STATUSES = ("Pending", "In Review", "Resolved")


class Concern(Base):
    """Support message a user sends to administrators."""

    __tablename__ = "concerns"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="Pending")
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User")
    replies = relationship(
        "ConcernReply",
        back_populates="concern",
        cascade="all, delete-orphan",
        order_by="ConcernReply.created_at",
    )
