"""
Task File Model - Metadata for files attached to a task
"""

from sqlalchemy import Column, String, Integer, DateTime, Uuid, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from taskboard.database import Base

class TaskFile(Base):
    """Attachment metadata; the bytes live wherever `url` points"""
    __tablename__ = "task_files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id = Column(Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    size = Column(Integer, default=0, nullable=False)  # Bytes
    type = Column(String(100), default="", nullable=False)  # MIME type
    url = Column(String(1000), nullable=True)
    added_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    added_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    task = relationship("Task", back_populates="files")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "name": self.name,
            "size": self.size,
            "type": self.type,
            "url": self.url,
            "added_by": self.added_by,
            "added_at": self.added_at,
        }

    def __repr__(self):
        return f"<TaskFile {self.name} on task {self.task_id}>"
