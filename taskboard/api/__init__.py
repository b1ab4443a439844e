"""
API Package - Exports all API routers
"""

from taskboard.api import auth, groups, tasks, users, audit

__all__ = ["auth", "groups", "tasks", "users", "audit"]
