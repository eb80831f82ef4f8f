"""ConcernReply model for administrator responses."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
import uuid

from database import Base, utcnow


class ConcernReply(Base):
    __tablename__ = "concern_replies"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    concern_id = Column(String, ForeignKey("concerns.id"), nullable=False, index=True)
    replied_by = Column(String, ForeignKey("users.id"), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    concern = relationship("Concern", back_populates="replies")
