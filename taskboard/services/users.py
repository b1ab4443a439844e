"""
User Pipeline - Registration, login, approval and account management
"""

from typing import Any, Dict, List, Mapping, Optional
import logging

from taskboard.core.config import settings
from taskboard.core.exceptions import (
    AuthenticationFailed,
    DuplicateUsername,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from taskboard.models import AuditAction, EntityType, User, UserRole, UserStatus
from taskboard.services.identity import Actor, is_admin, is_mod
from taskboard.services.permissions import ensure_active, ensure_can_manage_users, ensure_can_toggle_user_lock
from taskboard.store import Store
from taskboard.utils.audit_logger import record_audit

logger = logging.getLogger(__name__)

USER_UPDATE_FIELDS = frozenset({"role", "status"})

def _account(user: User) -> Dict[str, Any]:
    return {"username": user.username, "role": user.role, "status": user.status}

def _load(store: Store, user_id: Any) -> User:
    user = store.get("user", user_id)
    if user is None:
        raise NotFound("user", user_id)
    return user

def _coerce_role(value: Any) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        raise ValidationError(f"Invalid role {value!r}", field="role")

def _coerce_status(value: Any) -> UserStatus:
    try:
        return UserStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status {value!r}", field="status")

def register_user(
    store: Store,
    username: str,
    password: str,
    invite_code: Optional[str] = None,
    admin_invite_code: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> User:
    """
    Create an account.

    A new account is member/pending, or admin/active when the invite code
    matches the configured admin code. An unset admin code matches nothing.

    Raises:
        ValidationError: username or password too short
        DuplicateUsername: username taken
    """
    username = (username or "").strip()
    password = password or ""
    if admin_invite_code is None:
        admin_invite_code = settings.ADMIN_INVITE_CODE
    admin_invite_code = admin_invite_code.strip()

    if len(username) < settings.MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be at least {settings.MIN_USERNAME_LENGTH} characters", field="username")
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters", field="password")
    if store.count("user", {"username": username}):
        raise DuplicateUsername(username)

    if admin_invite_code and (invite_code or "").strip() == admin_invite_code:
        role, status = UserRole.ADMIN, UserStatus.ACTIVE
    else:
        role, status = UserRole.MEMBER, UserStatus.PENDING

    user = store.register_user(username, password, role, status)
    logger.info(f"✅ User registered: {user.username} ({role.value}, {status.value})")

    record_audit(store, user, AuditAction.CREATE, EntityType.USER,
                 entity_id=user.id, entity_name=user.username,
                 old_values=None, new_values=_account(user),
                 ip_address=ip_address, user_agent=user_agent)
    return user

def login_user(
    store: Store,
    username: str,
    password: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> User:
    """
    Check credentials. Pending accounts may log in (to see their status);
    locked accounts may not.
    """
    user = store.login_user((username or "").strip(), password or "")
    if user is None:
        logger.warning(f"⚠️  Failed login for '{username}'")
        raise AuthenticationFailed()
    if UserStatus(user.status) is UserStatus.LOCKED:
        logger.warning(f"⚠️  Locked account '{user.username}' tried to log in")
        raise AuthenticationFailed("Account is locked", locked=True)

    logger.info(f"🔑 {user.username} logged in")
    record_audit(store, user, AuditAction.LOGIN, EntityType.USER,
                 entity_id=user.id, entity_name=user.username,
                 ip_address=ip_address, user_agent=user_agent)
    return user

def logout_user(
    store: Store,
    actor: Actor,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    logger.info(f"👋 {actor.username} logged out")
    record_audit(store, actor, AuditAction.LOGOUT, EntityType.USER,
                 entity_id=actor.user_id, entity_name=actor.username,
                 ip_address=ip_address, user_agent=user_agent)

def update_user(store: Store, actor: Actor, user_id: Any, changes: Mapping[str, Any]) -> User:
    """Change role and/or status (admin)"""
    ensure_can_manage_users(actor)
    if not changes:
        raise ValidationError("No changes submitted")
    extra = set(changes) - USER_UPDATE_FIELDS
    if extra:
        raise ValidationError(f"Only role and status can be changed, got: {', '.join(sorted(extra))}",
                              field=sorted(extra)[0])

    values = {}
    if "role" in changes:
        values["role"] = _coerce_role(changes["role"])
    if "status" in changes:
        values["status"] = _coerce_status(changes["status"])

    user = _load(store, user_id)
    if user.id == actor.user_id:
        raise PermissionDenied("You cannot change your own role or status", list(values))
    old_values = {"role": user.role, "status": user.status}

    updated = store.update("user", user.id, values)
    logger.info(f"✅ User {updated.username} updated by {actor.username}: {', '.join(values)}")

    record_audit(store, actor, AuditAction.UPDATE, EntityType.USER,
                 entity_id=updated.id, entity_name=updated.username,
                 old_values=old_values, new_values=values)
    return updated

def _ensure_pending(user: User, verb: str) -> None:
    if UserStatus(user.status) is not UserStatus.PENDING:
        raise ValidationError(f"Only pending users can be {verb} (user is {UserStatus(user.status).value})",
                              field="status")

def approve_user(store: Store, actor: Actor, user_id: Any, role: Any = UserRole.MEMBER) -> User:
    """Activate a pending account, granting `role` in the same write"""
    ensure_can_manage_users(actor)
    role = _coerce_role(role)
    user = _load(store, user_id)
    _ensure_pending(user, "approved")
    old_values = {"role": user.role, "status": user.status}

    values = {"role": role, "status": UserStatus.ACTIVE}
    updated = store.update("user", user.id, values)
    logger.info(f"✅ User {updated.username} approved as {role.value} by {actor.username}")

    record_audit(store, actor, AuditAction.APPROVE, EntityType.USER,
                 entity_id=updated.id, entity_name=updated.username,
                 old_values=old_values, new_values=values)
    return updated

def reject_user(store: Store, actor: Actor, user_id: Any) -> None:
    """Hard-delete a pending registration"""
    ensure_can_manage_users(actor)
    user = _load(store, user_id)
    _ensure_pending(user, "rejected")
    snapshot = {"role": user.role, "status": user.status}
    user_key, username = user.id, user.username

    if not store.delete("user", user_key):
        raise NotFound("user", user_id)
    logger.info(f"🗑️  Registration of {username} rejected by {actor.username}")

    record_audit(store, actor, AuditAction.REJECT, EntityType.USER,
                 entity_id=user_key, entity_name=username,
                 old_values=snapshot, new_values=None)

def _set_account_lock(store: Store, actor: Actor, user_id: Any, locked: bool) -> User:
    verb = "lock" if locked else "unlock"
    ensure_can_toggle_user_lock(actor)

    user = _load(store, user_id)
    if user.id == actor.user_id:
        raise PermissionDenied(f"You cannot {verb} your own account")
    if is_mod(actor) and is_admin(user):
        raise PermissionDenied(f"Mods cannot {verb} admin accounts")

    current = UserStatus(user.status)
    expected = UserStatus.ACTIVE if locked else UserStatus.LOCKED
    if current is not expected:
        raise ValidationError(f"Cannot {verb} a user who is {current.value}", field="status")

    target = UserStatus.LOCKED if locked else UserStatus.ACTIVE
    updated = store.update("user", user.id, {"status": target})
    logger.info(f"🔒 {actor.username} {verb}ed account {updated.username}")

    record_audit(store, actor, AuditAction.LOCK if locked else AuditAction.UNLOCK, EntityType.USER,
                 entity_id=updated.id, entity_name=updated.username,
                 old_values={"status": current}, new_values={"status": target})
    return updated

def lock_user(store: Store, actor: Actor, user_id: Any) -> User:
    return _set_account_lock(store, actor, user_id, True)

def unlock_user(store: Store, actor: Actor, user_id: Any) -> User:
    return _set_account_lock(store, actor, user_id, False)

def delete_user(store: Store, actor: Actor, user_id: Any) -> None:
    """
    Permanently delete an account (admin). Rows it created or locked keep
    existing with the reference nulled; its audit entries keep the username.
    """
    ensure_can_manage_users(actor)
    user = _load(store, user_id)
    if user.id == actor.user_id:
        raise PermissionDenied("You cannot delete your own account")
    snapshot = _account(user)
    user_key = user.id

    if not store.delete("user", user_key):
        raise NotFound("user", user_id)
    logger.info(f"🗑️  User {snapshot['username']} deleted by {actor.username}")

    record_audit(store, actor, AuditAction.DELETE, EntityType.USER,
                 entity_id=user_key, entity_name=snapshot["username"],
                 old_values=snapshot, new_values=None)

def get_user(store: Store, actor: Actor, user_id: Any) -> User:
    """Any user may load their own account; others need an active account"""
    user = _load(store, user_id)
    if user.id != actor.user_id:
        ensure_active(actor, "view users")
    return user

def list_users(store: Store, actor: Actor, status: Any = None, role: Any = None) -> List[User]:
    """Accounts, oldest first. Filtering by status is for user managers."""
    ensure_active(actor, "view users")
    filters = {}
    if status is not None:
        ensure_can_manage_users(actor)
        filters["status"] = _coerce_status(status)
    if role is not None:
        filters["role"] = _coerce_role(role)
    return store.list("user", filters, order_by="created_at")

def list_pending_users(store: Store, actor: Actor) -> List[User]:
    return list_users(store, actor, status=UserStatus.PENDING)
