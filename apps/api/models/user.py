"""User model."""

from sqlalchemy import Column, String, DateTime, Integer, JSON
from sqlalchemy.orm import relationship
import uuid

from database import Base, utcnow


class User(Base):
    """Registered member or administrator."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    age = Column(Integer, nullable=True)
    phone = Column(String, nullable=True)
    alternate_email = Column(String, nullable=True)
    user_role = Column(String, nullable=False, default="user")
    employment_status = Column(String, nullable=True)
    current_company = Column(String, nullable=True)
    current_title = Column(String, nullable=True)
    preferred_jobs = Column(JSON, nullable=True)
    education = Column(JSON, nullable=True)
    profile_photo = Column(String, nullable=False, default="")
    last_active_time = Column(DateTime(timezone=True), default=utcnow)
    activity_alert_threshold = Column(Integer, nullable=False, default=30)
    last_activity_alert = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    notifications = relationship(
        "Notification",
        back_populates="user",
        order_by="Notification.created_at.desc()",
    )
