"""
Identity & Role Model - Actor session object and capability predicates

Every predicate is pure: it looks only at the `role` and `status` of the
object it is given (a User row or an Actor). An actor whose status is not
ACTIVE has no capability at all, whatever its role.
"""

from dataclasses import dataclass
from typing import Any, Optional
import uuid

from taskboard.models import User, UserRole, UserStatus

@dataclass(frozen=True)
class Actor:
    """
    The explicit session passed into every pipeline call.

    Built fresh from the user row on each request, so a role change or an
    account lock takes effect on the next call.
    """
    user_id: Optional[uuid.UUID]
    username: str
    role: UserRole
    status: UserStatus

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(
            user_id=user.id,
            username=user.username,
            role=UserRole(user.role),
            status=UserStatus(user.status),
        )

def _role(user: Any) -> Optional[UserRole]:
    role = getattr(user, "role", None)
    try:
        return UserRole(role) if role is not None else None
    except ValueError:
        return None

def _status(user: Any) -> Optional[UserStatus]:
    status = getattr(user, "status", None)
    try:
        return UserStatus(status) if status is not None else None
    except ValueError:
        return None

def is_admin(user: Any) -> bool:
    return _role(user) is UserRole.ADMIN

def is_mod(user: Any) -> bool:
    return _role(user) is UserRole.MOD

def is_admin_or_mod(user: Any) -> bool:
    return _role(user) in (UserRole.ADMIN, UserRole.MOD)

def is_active(user: Any) -> bool:
    return user is not None and _status(user) is UserStatus.ACTIVE

# Effective capabilities (role AND active status)

def can_manage_users(user: Any) -> bool:
    """Approve, reject, change role/status, delete accounts"""
    return is_active(user) and is_admin(user)

def can_lock_cells(user: Any) -> bool:
    return is_active(user) and is_admin_or_mod(user)

def can_delete_content(user: Any) -> bool:
    return is_active(user) and is_admin_or_mod(user)

def can_manage_groups(user: Any) -> bool:
    return is_active(user) and is_admin_or_mod(user)

def can_toggle_user_lock(user: Any) -> bool:
    """Switch an account between active and locked"""
    return is_active(user) and is_admin_or_mod(user)

def same_username(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive username match; blank never matches"""
    if not a or not b:
        return False
    return a.lower() == b.lower()
