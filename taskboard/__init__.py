"""
Scrum Task Board Backend

Usage:
    from taskboard.models import Task
    from taskboard.services.tasks import update_task
"""

__version__ = "1.0.0"  # Application version
