"""User 도메인의 SQLAlchemy 모델 정의입니다."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from app.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    image = Column(String(500))  # profile picture URL
    lang = Column(String(10), default="en")
    stripe_customer_id = Column(String(100))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    tasks = relationship("Task", back_populates="owner", foreign_keys="Task.user_id")
    task_assignments = relationship("TaskAssignment", back_populates="user")
