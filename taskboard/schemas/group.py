"""
Task Group Schemas - Pydantic models for groups (sprints)
"""

from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import date, datetime
from uuid import UUID

class GroupCreate(BaseModel):
    """Schema for creating a group - every field has a default"""
    name: Optional[str] = None  # "New Group" when omitted
    color: Optional[str] = None  # Default blue when omitted
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_expanded: bool = True

class GroupUpdate(BaseModel):
    """Partial update - only fields present in the request are applied"""
    name: Optional[str] = None
    color: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_expanded: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Group name cannot be empty')
        return v

class GroupOrder(BaseModel):
    """Group ids in their new display order"""
    order: List[UUID]

class GroupResponse(BaseModel):
    id: UUID
    name: str
    color: str
    start_date: Optional[date]
    end_date: Optional[date]
    is_expanded: bool
    sort_order: int
    created_by: Optional[UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
