"""
Task Schemas - Pydantic models for tasks, field locks and attachments
"""

from pydantic import BaseModel, field_validator
from typing import Dict, Optional
from datetime import date, datetime
from uuid import UUID

from taskboard.models.enums import TaskStatus

# DO NOT import from taskboard.schemas here - causes circular import

class TaskCreate(BaseModel):
    """
    Schema for creating a task. The owner is always the creator and is
    not accepted here.
    """
    group_id: UUID
    task: str = ""
    assign: str = ""
    user_story: str = ""
    acceptance_criteria: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    create_date: Optional[date] = None  # Defaults to today
    estimate_date: Optional[date] = None
    notes: str = ""
    reviewer: str = ""
    review: str = ""

    @field_validator('task')
    @classmethod
    def validate_title(cls, v):
        if len(v) > 500:
            raise ValueError('Task title cannot exceed 500 characters')
        return v

class TaskUpdate(BaseModel):
    """
    Partial update - only fields present in the request are applied.

    owner and create_date are accepted so an edit-all form can resubmit
    them; changing either is rejected by the permission evaluator.
    """
    task: Optional[str] = None
    owner: Optional[str] = None
    assign: Optional[str] = None
    user_story: Optional[str] = None
    acceptance_criteria: Optional[str] = None
    status: Optional[TaskStatus] = None
    create_date: Optional[date] = None
    estimate_date: Optional[date] = None
    notes: Optional[str] = None
    reviewer: Optional[str] = None
    review: Optional[str] = None
    group_id: Optional[UUID] = None  # Admin/mod only
    sort_order: Optional[int] = None  # Admin/mod only

class TaskResponse(BaseModel):
    """Schema for task data in responses"""
    id: UUID
    group_id: UUID
    task: str
    owner: str
    assign: str
    user_story: str
    acceptance_criteria: str
    status: TaskStatus
    create_date: date
    estimate_date: Optional[date]
    notes: str
    reviewer: str
    review: str
    sort_order: int
    locked_fields: Dict[str, bool]
    locked_by: Optional[UUID]
    created_by: Optional[UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True  # Pydantic V2 - replaces orm_mode

class TaskFileCreate(BaseModel):
    """Attachment metadata - the file itself is stored elsewhere"""
    name: str
    size: int = 0
    type: str = ""
    url: Optional[str] = None

class TaskFileResponse(BaseModel):
    id: UUID
    task_id: UUID
    name: str
    size: int
    type: str
    url: Optional[str]
    added_by: Optional[UUID]
    added_at: datetime

    class Config:
        from_attributes = True
