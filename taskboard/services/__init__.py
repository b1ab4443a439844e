"""
Services Package - Permission-aware mutation pipeline

Every operation takes an explicit Actor; routers never touch the store
directly for writes.
"""

from taskboard.services import identity, locks, permissions, tasks, groups, users, files, audit

__all__ = ["identity", "locks", "permissions", "tasks", "groups", "users", "files", "audit"]
