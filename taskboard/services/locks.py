"""
Field Lock Ledger - Per-task field locks and the lock/unlock operations

locked_fields is stored as a JSON object, but only names from
LockableField may appear in it; anything else is rejected here, so a typo
can never create a lock that nothing enforces.
"""

from typing import Any, Dict, List, Mapping, Optional
import logging

from taskboard.core.exceptions import NotFound, PermissionDenied, ValidationError
from taskboard.models import AuditAction, EntityType, LockableField
from taskboard.services.identity import Actor, can_lock_cells, is_active
from taskboard.store import Store
from taskboard.utils.audit_logger import record_audit

logger = logging.getLogger(__name__)

LOCKABLE_FIELDS = frozenset(field.value for field in LockableField)

def ensure_lockable(field_name: str) -> str:
    """Return the canonical field name or raise ValidationError"""
    name = getattr(field_name, "value", field_name)
    if name not in LOCKABLE_FIELDS:
        raise ValidationError(f"'{name}' is not a lockable field", field=str(name))
    return name

def normalize_locked_fields(raw: Optional[Mapping[str, Any]]) -> Dict[str, bool]:
    """Validate a locked_fields map coming from outside (legacy rows, imports)"""
    normalized = {}
    for key, value in (raw or {}).items():
        normalized[ensure_lockable(key)] = value is True
    return normalized

def is_field_locked(task: Any, field_name: str) -> bool:
    locked = getattr(task, "locked_fields", None) or {}
    return locked.get(field_name) is True

def get_locked_fields(task: Any) -> List[str]:
    locked = getattr(task, "locked_fields", None) or {}
    return [field for field, flag in locked.items() if flag is True]

def _set_lock(store: Store, actor: Actor, task_id: Any, field_name: str, locked: bool):
    verb = "lock" if locked else "unlock"
    field_name = ensure_lockable(field_name)

    if not is_active(actor):
        raise PermissionDenied(f"Cannot {verb} field: account not active", [field_name],
                               {field_name: "account not active"})
    if not can_lock_cells(actor):
        logger.warning(f"⚠️  {actor.username} attempted to {verb} {field_name} on task {task_id}")
        raise PermissionDenied(f"Only admins and mods can {verb} fields", [field_name],
                               {field_name: "requires admin or mod"})

    task = store.get("task", task_id)
    if task is None:
        raise NotFound("task", task_id)

    old_locked = normalize_locked_fields(task.locked_fields)
    new_locked = {**old_locked, field_name: locked}
    updates = {"locked_fields": new_locked}
    if locked:
        updates["locked_by"] = actor.user_id

    updated = store.update("task", task.id, updates)
    logger.info(f"🔒 {actor.username} {verb}ed '{field_name}' on task {task.id}")

    # Whole map on both sides, so concurrent lock state is visible in the trail
    record_audit(
        store,
        actor,
        AuditAction.LOCK if locked else AuditAction.UNLOCK,
        EntityType.TASK,
        entity_id=task.id,
        entity_name=f"{task.task} - {field_name}",
        old_values={"locked_fields": old_locked},
        new_values={"locked_fields": new_locked},
    )
    return updated

def lock_field(store: Store, actor: Actor, task_id: Any, field_name: str):
    """
    Lock one field of a task against member edits.

    Idempotent: locking an already locked field rewrites the same map and
    still produces an audit entry.
    """
    return _set_lock(store, actor, task_id, field_name, True)

def unlock_field(store: Store, actor: Actor, task_id: Any, field_name: str):
    """Unlock one field; locked_by is left as the last locker"""
    return _set_lock(store, actor, task_id, field_name, False)
