"""
Models Package - Exports all database models for easy importing
"""

# Importing every model registers its table with Base for create_all()
from taskboard.models.enums import (
    UserRole,
    UserStatus,
    TaskStatus,
    LockableField,
    AuditAction,
    EntityType,
)
from taskboard.models.user import User
from taskboard.models.task_group import TaskGroup, DEFAULT_GROUP_COLOR
from taskboard.models.task import Task
from taskboard.models.task_file import TaskFile
from taskboard.models.audit_log import AuditLog, AuditLogImmutableError

__all__ = [
    "UserRole",
    "UserStatus",
    "TaskStatus",
    "LockableField",
    "AuditAction",
    "EntityType",
    "User",
    "TaskGroup",
    "DEFAULT_GROUP_COLOR",
    "Task",
    "TaskFile",
    "AuditLog",
    "AuditLogImmutableError",
]
