"""GoalResource model: denormalized copy of a catalog resource linked to a goal."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid

from database import Base, utcnow


class GoalResource(Base):
    """Learning resource pinned to a goal, unique by link within that goal."""

    __tablename__ = "goal_resources"
    __table_args__ = (UniqueConstraint("goal_id", "link", name="uq_goal_resources_goal_link"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    goal_id = Column(String, ForeignKey("goals.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    platform = Column(String, nullable=False)
    link = Column(String, nullable=False)
    thumbnail = Column(String, nullable=True)
    duration_seconds = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    goal = relationship("Goal", back_populates="resources")
