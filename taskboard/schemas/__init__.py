"""
Schemas Package - Exports all Pydantic schemas
"""

from taskboard.schemas.user import (
    UserRegister,
    UserLogin,
    UserResponse,
    UserUpdate,
    UserApprove,
    TokenResponse,
)
from taskboard.schemas.group import (
    GroupCreate,
    GroupUpdate,
    GroupOrder,
    GroupResponse,
)
from taskboard.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    TaskFileCreate,
    TaskFileResponse,
)
from taskboard.schemas.audit import (
    AuditLogResponse,
    AuditLogDetailResponse,
    AuditLogListResponse,
    AuditStatsResponse,
    FieldChangeResponse,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "UserUpdate",
    "UserApprove",
    "TokenResponse",
    "GroupCreate",
    "GroupUpdate",
    "GroupOrder",
    "GroupResponse",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskFileCreate",
    "TaskFileResponse",
    "AuditLogResponse",
    "AuditLogDetailResponse",
    "AuditLogListResponse",
    "AuditStatsResponse",
    "FieldChangeResponse",
]
