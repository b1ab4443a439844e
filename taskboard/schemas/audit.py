"""
Audit Log Schemas - Pydantic models for audit log responses
"""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID

from taskboard.models.enums import AuditAction, EntityType

class AuditLogResponse(BaseModel):
    """Schema for audit log entries in responses"""
    id: UUID
    user_id: Optional[UUID]  # Null once the user is deleted
    username: Optional[str]  # Snapshot at write time
    action: AuditAction
    entity_type: EntityType
    entity_id: Optional[UUID]  # Null for bulk operations
    entity_name: Optional[str]
    old_values: Optional[Dict[str, Any]]
    new_values: Optional[Dict[str, Any]]
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True  # Allow creation from SQLAlchemy models

class FieldChangeResponse(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None

class AuditLogDetailResponse(AuditLogResponse):
    """Entry with computed field changes and a readable message"""
    changes: List[FieldChangeResponse]
    message: str

class AuditLogListResponse(BaseModel):
    """Schema for paginated audit log list"""
    logs: List[AuditLogResponse]
    total: int
    page: int
    page_size: int

class AuditStatsResponse(BaseModel):
    """Schema for audit log statistics"""
    total_events: int
    events_today: int  # Since midnight UTC
    by_action: Dict[str, int]
