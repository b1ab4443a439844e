"""
Utilities Package - Audit helpers

This package contains:
- audit_logger.py: best-effort audit entry creation
- audit_diff.py: field-level diffs and readable messages
"""

from taskboard.utils.audit_logger import record_audit, snapshot
from taskboard.utils.audit_diff import FieldChange, diff_fields, format_message

__all__ = [
    "record_audit",
    "snapshot",
    "FieldChange",
    "diff_fields",
    "format_message",
]
