"""Goal model and goal/skill association table."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import relationship
import uuid

from database import Base, utcnow


GOAL_STATUSES = ("Pending", "In Progress", "Completed")

goal_skills = Table(
    "goal_skills",
    Base.metadata,
    Column("goal_id", String, ForeignKey("goals.id"), primary_key=True),
    Column("skill_id", String, ForeignKey("skills.id"), primary_key=True, index=True),
)


class Goal(Base):
    """Time-bounded objective tied to one or more skills."""

    __tablename__ = "goals"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="No description provided.")
    start_date = Column(Date, nullable=False)
    target_completion_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="Pending")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User")
    skills = relationship("Skill", secondary=goal_skills, order_by="Skill.created_at")
    resources = relationship(
        "GoalResource",
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="GoalResource.created_at",
    )
