"""
Task Group Model - A sprint/board section that exclusively owns its tasks
"""

from sqlalchemy import Column, String, Boolean, Integer, Date, DateTime, Uuid, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from taskboard.database import Base

DEFAULT_GROUP_COLOR = "#3b82f6"

class TaskGroup(Base):
    """
    Task group table.

    Deleting a group deletes its tasks (ORM cascade plus ON DELETE CASCADE
    on tasks.group_id).
    """
    __tablename__ = "task_groups"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    color = Column(String(20), default=DEFAULT_GROUP_COLOR, nullable=False)  # Display hint only
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_expanded = Column(Boolean, default=True, nullable=False)  # Persisted UI state
    sort_order = Column(Integer, default=0, nullable=False, index=True)  # Ties broken by insertion

    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tasks = relationship(
        "Task",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Task.sort_order",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "is_expanded": self.is_expanded,
            "sort_order": self.sort_order,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<TaskGroup {self.id}: {self.name}>"
