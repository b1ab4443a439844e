"""
Task Files - Attachment metadata on tasks
"""

from typing import Any, List, Optional
import logging

from taskboard.core.exceptions import NotFound, PermissionDenied, ValidationError
from taskboard.models import AuditAction, EntityType, TaskFile
from taskboard.services.identity import Actor, can_delete_content
from taskboard.services.permissions import ensure_active
from taskboard.store import Store
from taskboard.utils.audit_logger import record_audit

logger = logging.getLogger(__name__)

def _label(task: Any, name: str) -> str:
    title = getattr(task, "task", None) or "Untitled"
    return f"{title} - {name}"

def attach_file(
    store: Store,
    actor: Actor,
    task_id: Any,
    name: str,
    size: int = 0,
    type: str = "",
    url: Optional[str] = None,
) -> TaskFile:
    ensure_active(actor, "attach files")
    name = (name or "").strip()
    if not name:
        raise ValidationError("File name cannot be empty", field="name")
    if size is None or size < 0:
        raise ValidationError("File size cannot be negative", field="size")

    task = store.get("task", task_id)
    if task is None:
        raise NotFound("task", task_id)

    task_file = store.insert("task_file", {
        "task_id": task.id,
        "name": name,
        "size": size,
        "type": type or "",
        "url": url,
        "added_by": actor.user_id,
    })
    logger.info(f"📎 {actor.username} attached '{name}' to task {task.id}")

    record_audit(store, actor, AuditAction.CREATE, EntityType.TASK_FILE,
                 entity_id=task_file.id, entity_name=_label(task, name),
                 old_values=None, new_values=task_file.to_dict())
    return task_file

def remove_file(store: Store, actor: Actor, file_id: Any) -> None:
    """Admins and mods may remove any file, members only their own"""
    ensure_active(actor, "remove files")
    task_file = store.get("task_file", file_id)
    if task_file is None:
        raise NotFound("task_file", file_id)
    if not can_delete_content(actor) and task_file.added_by != actor.user_id:
        raise PermissionDenied("Only admins, mods or the uploader can remove this file")

    snapshot = task_file.to_dict()
    label = _label(store.get("task", task_file.task_id), task_file.name)

    if not store.delete("task_file", task_file.id):
        raise NotFound("task_file", file_id)
    logger.info(f"🗑️  {actor.username} removed file '{snapshot['name']}'")

    record_audit(store, actor, AuditAction.DELETE, EntityType.TASK_FILE,
                 entity_id=snapshot["id"], entity_name=label,
                 old_values=snapshot, new_values=None)

def list_files(store: Store, task_id: Any) -> List[TaskFile]:
    if store.get("task", task_id) is None:
        raise NotFound("task", task_id)
    return store.list("task_file", {"task_id": task_id}, order_by="added_at")
