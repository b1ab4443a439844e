"""
Task Mutation Pipeline - create, update, delete and query tasks

Every mutation follows the same order: load the pre-image, evaluate
permissions, write, then record the audit entry (best effort).
"""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional
import logging

from taskboard.core.exceptions import NotFound, StoreFailure, ValidationError
from taskboard.models import AuditAction, EntityType, Task, TaskStatus
from taskboard.services.identity import Actor
from taskboard.services.locks import lock_field, unlock_field
from taskboard.services.permissions import (
    TASK_FIELDS,
    ensure_active,
    ensure_can_delete_content,
    ensure_can_write,
    evaluate_new_task,
    raise_if_denied,
)
from taskboard.store import Store, as_uuid
from taskboard.utils.audit_logger import record_audit

logger = logging.getLogger(__name__)

TEXT_FIELDS = frozenset({
    "task", "owner", "assign", "user_story", "acceptance_criteria", "notes", "reviewer", "review",
})
DATE_FIELDS = frozenset({"create_date", "estimate_date"})

# Accepted in a create payload; everything else is system-assigned
CREATE_FIELDS = (TEXT_FIELDS - {"owner"}) | {"status", "group_id", "create_date", "estimate_date"}

__all__ = [
    "create_task",
    "update_task",
    "delete_task",
    "lock_task_field",
    "unlock_task_field",
    "get_task",
    "list_tasks",
]

def coerce_date(field: str, value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid date for {field}: {value!r}", field=field)

def coerce_task_values(values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate field names and normalise values to column types.

    Raises:
        ValidationError: unknown field, bad status, bad date or id
    """
    coerced = {}
    for field, value in values.items():
        if field not in TASK_FIELDS:
            raise ValidationError(f"Unknown task field '{field}'", field=field)
        if field in TEXT_FIELDS:
            value = "" if value is None else str(value)
        elif field == "status":
            try:
                value = TaskStatus(value)
            except ValueError:
                raise ValidationError(f"Invalid status {value!r}", field=field)
        elif field in DATE_FIELDS:
            value = coerce_date(field, value)
            if field == "create_date" and value is None:
                raise ValidationError("create_date cannot be empty", field=field)
        elif field == "group_id":
            value = as_uuid(value)
            if value is None:
                raise ValidationError("group_id is required", field=field)
        elif field == "sort_order":
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid sort_order {value!r}", field=field)
        coerced[field] = value
    return coerced

def _require_group(store: Store, group_id: Any) -> None:
    if store.get("group", group_id) is None:
        raise NotFound("group", group_id)

def create_task(store: Store, actor: Actor, fields: Mapping[str, Any]) -> Task:
    """
    Create a task in a group.

    The owner is always the creating user; sort_order puts the task at the
    end of its group; no field starts locked.
    """
    ensure_active(actor, "create tasks")

    fields = dict(fields)
    if "owner" in fields:
        logger.debug(f"Ignoring submitted owner {fields.pop('owner')!r} - owner is the creator")
    extra = set(fields) - CREATE_FIELDS
    if extra:
        raise ValidationError(f"Fields not accepted on create: {', '.join(sorted(extra))}",
                              field=sorted(extra)[0])
    if fields.get("group_id") is None:
        raise ValidationError("group_id is required", field="group_id")

    values = coerce_task_values(fields)
    raise_if_denied(evaluate_new_task(actor, values), "Create rejected")
    _require_group(store, values["group_id"])

    values.update({
        "owner": actor.username,
        "sort_order": store.count("task", {"group_id": values["group_id"]}),
        "locked_fields": {},
        "created_by": actor.user_id,
    })
    values.setdefault("create_date", date.today())

    task = store.insert("task", values)
    logger.info(f"✅ Task created: {task.id} '{task.task}' by {actor.username}")

    record_audit(store, actor, AuditAction.CREATE, EntityType.TASK,
                 entity_id=task.id, entity_name=task.task,
                 old_values=None, new_values=task.to_dict())
    return task

def update_task(store: Store, actor: Actor, task_id: Any, changes: Mapping[str, Any]) -> Task:
    """
    Apply a multi-field update, all or nothing.

    Audit old_values is the whole pre-image, new_values the submitted
    changes (not the post-image).

    Raises:
        ValidationError: empty or malformed changes
        NotFound: task (or target group) missing
        PermissionDenied: listing every rejected field
    """
    if not changes:
        raise ValidationError("No changes submitted")
    values = coerce_task_values(changes)

    task = store.get("task", task_id)
    if task is None:
        raise NotFound("task", task_id)
    pre_image = task.to_dict()

    ensure_can_write(actor, task, values)
    if "group_id" in values and values["group_id"] != task.group_id:
        _require_group(store, values["group_id"])

    updated = store.update("task", task.id, values)
    logger.info(f"✅ Task {task.id} updated by {actor.username}: {', '.join(values)}")

    record_audit(store, actor, AuditAction.UPDATE, EntityType.TASK,
                 entity_id=task.id, entity_name=updated.task,
                 old_values=pre_image, new_values=values)
    return updated

def delete_task(store: Store, actor: Actor, task_id: Any) -> None:
    """
    Delete a task (admin/mod).

    If the pre-image cannot be loaded (store failure, or the row is already
    gone) the delete still goes ahead, without an audit entry; deleting a
    missing task is then a silent no-op.
    """
    ensure_can_delete_content(actor, "tasks")

    try:
        pre_image = store.get("task", task_id)
    except StoreFailure:
        logger.warning(f"⚠️  Could not load task {task_id} before delete - audit will be skipped")
        pre_image = None
    snapshot = pre_image.to_dict() if pre_image is not None else None

    deleted = store.delete("task", task_id)
    if deleted:
        logger.info(f"🗑️  Task {task_id} deleted by {actor.username}")
    elif snapshot is not None:
        raise NotFound("task", task_id)

    if snapshot is None:
        # Already gone or unreadable: nothing to name in the trail
        logger.info(f"🗑️  Task {task_id} delete by {actor.username} (no pre-image, audit skipped)")
        return
    record_audit(store, actor, AuditAction.DELETE, EntityType.TASK,
                 entity_id=snapshot["id"], entity_name=snapshot["task"],
                 old_values=snapshot, new_values=None)

def lock_task_field(store: Store, actor: Actor, task_id: Any, field_name: str) -> Task:
    return lock_field(store, actor, task_id, field_name)

def unlock_task_field(store: Store, actor: Actor, task_id: Any, field_name: str) -> Task:
    return unlock_field(store, actor, task_id, field_name)

def get_task(store: Store, task_id: Any) -> Task:
    task = store.get("task", task_id)
    if task is None:
        raise NotFound("task", task_id)
    return task

def list_tasks(store: Store, group_id: Any = None) -> List[Task]:
    """Tasks in display order, optionally for one group"""
    filters = {"group_id": group_id} if group_id is not None else None
    return store.list("task", filters, order_by="sort_order")
