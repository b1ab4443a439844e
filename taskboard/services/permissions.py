"""
Permission Evaluator - Who may write which task field

can_write() is a pure function of (actor, task, field, value). The
mutation pipeline calls it for every field an update touches and rejects
the whole update if any field is denied.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
import logging

from taskboard.core.exceptions import PermissionDenied
from taskboard.models import LockableField, TaskStatus
from taskboard.services.identity import (
    can_delete_content,
    can_manage_groups,
    can_manage_users,
    can_toggle_user_lock,
    is_active,
    is_admin_or_mod,
    same_username,
)
from taskboard.services.locks import is_field_locked

logger = logging.getLogger(__name__)

# Denial reasons (stable strings, shown to the user)
NOT_ACTIVE = "account not active"
FIELD_LOCKED = "field locked"
READ_ONLY = "field is read-only"
REVIEWER_ONLY = "only the reviewer can edit the review"
DONE_REVIEWER_ONLY = "only the reviewer can mark the task Done"
ADMIN_OR_MOD_ONLY = "requires admin or mod"

# Set by the system at creation or by the lock ledger; no role may write them
SYSTEM_FIELDS = frozenset({
    "id", "create_date", "created_by", "created_at", "updated_at",
    "locked_fields", "locked_by",
})

# Lockable, but assigned to the creator at creation and display-only after.
# can_write() still answers the lock question for it; updates reject it.
CREATION_ONLY_FIELDS = frozenset({LockableField.OWNER.value})

# Moving a task between groups or positions
STRUCTURAL_FIELDS = frozenset({"group_id", "sort_order"})

TASK_FIELDS = frozenset(field.value for field in LockableField) | SYSTEM_FIELDS | STRUCTURAL_FIELDS

@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self):
        return self.allowed

ALLOW = Decision(True)

def deny(reason: str) -> Decision:
    return Decision(False, reason)

@dataclass(frozen=True)
class Denial:
    field: str
    reason: str

def _is_reviewer(actor: Any, task: Any) -> bool:
    return same_username(getattr(actor, "username", None), getattr(task, "reviewer", None))

def can_write(actor: Any, task: Any, field: str, value: Any = None) -> Decision:
    """
    Decide whether `actor` may set `field` of `task` to `value`.

    Rules, first match wins:
        1. inactive accounts can write nothing
        2. review: only the task's reviewer, whatever the role or lock
        3. system fields (create_date, locked_fields, ...): nobody
        4. status=Done: only the task's reviewer (then falls through)
        5. admin/mod: everything else, locks ignored
        6. group_id/sort_order: admin/mod only
        7. locked field: denied to members
    """
    if not is_active(actor):
        return deny(NOT_ACTIVE)

    if field == LockableField.REVIEW.value:
        return ALLOW if _is_reviewer(actor, task) else deny(REVIEWER_ONLY)

    if field in SYSTEM_FIELDS:
        return deny(READ_ONLY)

    if field == LockableField.STATUS.value and value == TaskStatus.DONE and not _is_reviewer(actor, task):
        return deny(DONE_REVIEWER_ONLY)

    if is_admin_or_mod(actor):
        return ALLOW

    if field in STRUCTURAL_FIELDS:
        return deny(ADMIN_OR_MOD_ONLY)

    if is_field_locked(task, field):
        return deny(FIELD_LOCKED)

    return ALLOW

def touched_fields(task: Any, changes: Mapping[str, Any]) -> List[str]:
    """Fields whose submitted value differs from the current row"""
    return [field for field, value in changes.items() if getattr(task, field, None) != value]

def evaluate_changes(actor: Any, task: Any, changes: Mapping[str, Any]) -> List[Denial]:
    """
    Every denied field of a multi-field update.

    Only touched fields are checked, so resubmitting an unchanged locked
    value (edit-all form) is not a write to it. Reviewer rules use the
    current reviewer, never one submitted in the same update. The owner
    is display-only once the task exists, for every role.
    """
    if not is_active(actor):
        fields = touched_fields(task, changes) or list(changes)
        return [Denial(field, NOT_ACTIVE) for field in fields]

    denials = []
    for field in touched_fields(task, changes):
        if field in CREATION_ONLY_FIELDS:
            denials.append(Denial(field, READ_ONLY))
            continue
        decision = can_write(actor, task, field, changes[field])
        if not decision.allowed:
            denials.append(Denial(field, decision.reason))
    return denials

def raise_if_denied(denials: List[Denial], message: str = "Update rejected") -> None:
    if not denials:
        return
    fields = [d.field for d in denials]
    reasons: Dict[str, str] = {d.field: d.reason for d in denials}
    raise PermissionDenied(f"{message}: cannot edit {', '.join(fields)}", fields, reasons)

def ensure_can_write(actor: Any, task: Any, changes: Mapping[str, Any]) -> None:
    """All-or-nothing check for a task update"""
    denials = evaluate_changes(actor, task, changes)
    if denials:
        logger.warning(
            f"⚠️  {getattr(actor, 'username', None)} denied on task {getattr(task, 'id', None)}: "
            + ", ".join(f"{d.field} ({d.reason})" for d in denials)
        )
    raise_if_denied(denials)

def evaluate_new_task(actor: Any, fields: Mapping[str, Any]) -> List[Denial]:
    """
    Reviewer rules for a task that does not exist yet.
    The reviewer named in the payload is the one that counts.
    """
    if not is_active(actor):
        return [Denial("task", NOT_ACTIVE)]

    denials = []
    reviewer = fields.get("reviewer")
    username = getattr(actor, "username", None)
    if fields.get("review") and not same_username(username, reviewer):
        denials.append(Denial("review", REVIEWER_ONLY))
    if fields.get("status") == TaskStatus.DONE and not same_username(username, reviewer):
        denials.append(Denial("status", DONE_REVIEWER_ONLY))
    return denials

# ---- whole-entity gates ---------------------------------------------------

def ensure_active(actor: Any, action: str) -> None:
    if not is_active(actor):
        raise PermissionDenied(f"Cannot {action}: {NOT_ACTIVE}")

def ensure_can_manage_groups(actor: Any) -> None:
    ensure_active(actor, "manage groups")
    if not can_manage_groups(actor):
        raise PermissionDenied("Only admins and mods can manage groups")

def ensure_can_delete_content(actor: Any, what: str = "content") -> None:
    ensure_active(actor, f"delete {what}")
    if not can_delete_content(actor):
        raise PermissionDenied(f"Only admins and mods can delete {what}")

def ensure_can_manage_users(actor: Any) -> None:
    ensure_active(actor, "manage users")
    if not can_manage_users(actor):
        raise PermissionDenied("Only admins can manage users")

def ensure_can_toggle_user_lock(actor: Any) -> None:
    ensure_active(actor, "lock accounts")
    if not can_toggle_user_lock(actor):
        raise PermissionDenied("Only admins and mods can lock or unlock accounts")
