"""
Core Package - Configuration, security, and domain exceptions

IMPORTANT: Only import config, security and exceptions here.
Dependencies must be imported directly to avoid circular imports.
"""

from taskboard.core.config import settings, get_settings
from taskboard.core.security import hash_password, verify_password, create_access_token, decode_token
from taskboard.core.exceptions import (
    TaskboardError,
    PermissionDenied,
    NotFound,
    ValidationError,
    DuplicateUsername,
    AuthenticationFailed,
    StoreFailure,
    AuditWriteFailure,
)

__all__ = [
    "settings",
    "get_settings",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
    "TaskboardError",
    "PermissionDenied",
    "NotFound",
    "ValidationError",
    "DuplicateUsername",
    "AuthenticationFailed",
    "StoreFailure",
    "AuditWriteFailure",
]
