"""Task 도메인의 SQLAlchemy 모델 정의입니다."""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Index, JSON, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from app.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, default="")
    priority = Column(String(10), default="medium")  # high/medium/low
    category = Column(String(100), default="")
    tags = Column(JSON, default=list)
    completed = Column(Boolean, default=False, nullable=False)
    scheduled = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), nullable=True)  # todo/inprogress/completed/unscheduled
    order = Column(Integer, default=1000)
    date = Column(DateTime, nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)  # minutes
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="tasks", foreign_keys=[user_id])
    parent = relationship("Task", remote_side=[id], back_populates="subtasks")
    subtasks = relationship("Task", back_populates="parent")
    assignments = relationship(
        "TaskAssignment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskAssignment.id",
    )
    resources = relationship(
        "TaskResource",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskResource.position",
    )

    @property
    def assigned_to(self):
        return [
            {"id": a.user.id, "name": a.user.name, "profile_pic": a.user.image}
            for a in self.assignments
            if a.user is not None
        ]

    __table_args__ = (
        Index("idx_task_owner", "user_id"),
        Index("idx_task_parent", "parent_id"),
        Index("idx_task_bucket", "completed", "scheduled", "status"),
        Index("idx_task_date", "date"),
    )


class TaskAssignment(Base):
    __tablename__ = "task_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    task = relationship("Task", back_populates="assignments")
    user = relationship("User", back_populates="task_assignments")

    __table_args__ = (
        UniqueConstraint("task_id", "user_id", name="uq_task_assignment"),
        Index("idx_assignment_user", "user_id"),
    )


class TaskResource(Base):
    __tablename__ = "task_resources"

    id = Column(String(36), primary_key=True, default=_new_id)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(300), nullable=False)
    type = Column(String(100), default="")
    category = Column(String(10), nullable=False)  # file/link/note
    url = Column(String(1000))

    task = relationship("Task", back_populates="resources")

    __table_args__ = (
        Index("idx_resource_task", "task_id", "position"),
    )
