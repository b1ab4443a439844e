"""
Enumerations shared by models, schemas and services

The string values are the persisted contract (existing rows store them
byte-for-byte), so never rename a value - only add.
"""

import enum

class UserRole(str, enum.Enum):
    """Role enumeration - admin and mod are siblings, not a ladder"""
    ADMIN = "admin"  # Manages users, locks cells, deletes content
    MOD = "mod"  # Locks cells, deletes content, toggles account locks
    MEMBER = "member"  # Edits unlocked task fields

class UserStatus(str, enum.Enum):
    """Account status - anything but ACTIVE has zero capability"""
    PENDING = "pending"  # Registered, waiting for admin approval
    ACTIVE = "active"
    LOCKED = "locked"  # Suspended by an admin or mod

class TaskStatus(str, enum.Enum):
    """Task status - no enforced order, any permitted actor may set any value"""
    NOT_STARTED = "Not Started"
    WORKING_ON_IT = "Working on it"
    STUCKING = "Stucking"
    IN_REVIEW = "In Review"
    DONE = "Done"  # Reviewer only

class LockableField(str, enum.Enum):
    """Task fields whose member editability is gated by locked_fields"""
    TASK = "task"
    OWNER = "owner"
    ASSIGN = "assign"
    USER_STORY = "user_story"
    ACCEPTANCE_CRITERIA = "acceptance_criteria"
    STATUS = "status"
    ESTIMATE_DATE = "estimate_date"
    NOTES = "notes"
    REVIEWER = "reviewer"
    REVIEW = "review"

class AuditAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    APPROVE = "approve"
    REJECT = "reject"
    LOCK = "lock"
    UNLOCK = "unlock"

class EntityType(str, enum.Enum):
    TASK = "task"
    GROUP = "group"
    USER = "user"
    TASK_FILE = "task_file"

def enum_values(enum_cls):
    """values_callable for SQLAlchemy Enum columns - persist values, not member names"""
    return [member.value for member in enum_cls]
