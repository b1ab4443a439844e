"""
Domain Exceptions - Typed failures raised by the service layer

Routers never build HTTP errors for these by hand; main.py maps each class
to a status code and a JSON body.
"""

from typing import Any, Dict, List, Optional

class TaskboardError(Exception):
    """Base class for every failure the service layer reports"""
    kind = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class PermissionDenied(TaskboardError):
    """
    The permission evaluator refused the operation.

    `fields` lists every rejected field name (empty for whole-entity
    operations such as delete), `reasons` maps field -> reason.
    """
    kind = "Permission Denied"

    def __init__(
        self,
        message: str,
        fields: Optional[List[str]] = None,
        reasons: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.fields = list(fields or [])
        self.reasons = dict(reasons or {})

class NotFound(TaskboardError):
    """Referenced row does not exist (or was deleted concurrently)"""
    kind = "Not Found"

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(f"{entity_type} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id

class ValidationError(TaskboardError):
    """Malformed input, reported before any store mutation"""
    kind = "Validation Error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

class DuplicateUsername(ValidationError):
    kind = "Conflict"

    def __init__(self, username: str):
        super().__init__(f"Username '{username}' already exists", field="username")

class AuthenticationFailed(TaskboardError):
    """Login refused - unknown user, wrong password, or locked account"""
    kind = "Authentication Failed"

    def __init__(self, message: str = "Invalid username or password", locked: bool = False):
        super().__init__(message)
        self.locked = locked

class StoreFailure(TaskboardError):
    """The underlying store call failed (connection, constraint, ...)"""
    kind = "Store Failure"

class AuditWriteFailure(StoreFailure):
    """Audit insert failed after the primary mutation succeeded"""
    kind = "Audit Write Failure"
