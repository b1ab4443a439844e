"""
Task Model - A row on the board with per-field locks
"""

from sqlalchemy import Column, String, Text, Integer, Date, DateTime, JSON, Uuid, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime, date
import uuid

from taskboard.database import Base
from taskboard.models.enums import TaskStatus, enum_values

class Task(Base):
    """
    Task table.

    locked_fields maps a lockable field name to True/False; a missing key
    means unlocked. locked_by is informational - lock authority is role based.
    """
    __tablename__ = "tasks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id = Column(Uuid, ForeignKey("task_groups.id", ondelete="CASCADE"), nullable=False, index=True)

    # Free-text fields
    task = Column(String(500), default="", nullable=False)  # Title
    owner = Column(String(100), default="", nullable=False)  # Set to the creator, display-only afterwards
    assign = Column(String(100), default="", nullable=False)
    user_story = Column(Text, default="", nullable=False)
    acceptance_criteria = Column(Text, default="", nullable=False)
    notes = Column(Text, default="", nullable=False)
    reviewer = Column(String(100), default="", nullable=False)
    review = Column(Text, default="", nullable=False)

    status = Column(
        SQLEnum(TaskStatus, name="task_status", values_callable=enum_values),
        default=TaskStatus.NOT_STARTED, nullable=False, index=True,
    )
    create_date = Column(Date, default=date.today, nullable=False)  # Immutable
    estimate_date = Column(Date, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False, index=True)  # Position within the group

    locked_fields = Column(JSON, default=dict, nullable=False)
    locked_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    group = relationship("TaskGroup", back_populates="tasks")
    files = relationship("TaskFile", back_populates="task", cascade="all, delete-orphan", passive_deletes=True)

    def to_dict(self) -> dict:
        """Full row snapshot used as the audit pre-image"""
        return {
            "id": self.id,
            "group_id": self.group_id,
            "task": self.task,
            "owner": self.owner,
            "assign": self.assign,
            "user_story": self.user_story,
            "acceptance_criteria": self.acceptance_criteria,
            "status": self.status,
            "create_date": self.create_date,
            "estimate_date": self.estimate_date,
            "notes": self.notes,
            "reviewer": self.reviewer,
            "review": self.review,
            "sort_order": self.sort_order,
            "locked_fields": dict(self.locked_fields or {}),
            "locked_by": self.locked_by,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<Task {self.id}: {self.task} ({self.status})>"
