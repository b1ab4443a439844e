"""
Audit Queries - Read side of the audit trail, with per-role visibility

Admins and mods see every entry. Members see every board entry (tasks,
groups, files) plus the user entries about or by themselves.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from taskboard.core.exceptions import NotFound, PermissionDenied, ValidationError
from taskboard.models import AuditAction, AuditLog, EntityType
from taskboard.services.identity import Actor, is_admin_or_mod
from taskboard.services.permissions import ensure_active
from taskboard.store import Store, as_uuid
from taskboard.utils.audit_diff import FieldChange, diff_fields, format_message

logger = logging.getLogger(__name__)

RECENT_LIMIT = 50

def _visible_to(actor: Actor):
    return None if is_admin_or_mod(actor) else actor.user_id

def can_view(actor: Actor, entry: AuditLog) -> bool:
    if is_admin_or_mod(actor):
        return True
    if EntityType(entry.entity_type) is not EntityType.USER:
        return True
    return actor.user_id is not None and actor.user_id in (entry.entity_id, entry.user_id)

def _filters(
    user_id: Any = None,
    action: Any = None,
    entity_type: Any = None,
    entity_id: Any = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict[str, Any]:
    filters = {}
    if user_id is not None:
        filters["user_id"] = user_id
    if action is not None:
        try:
            filters["action"] = AuditAction(action)
        except ValueError:
            raise ValidationError(f"Invalid action {action!r}", field="action")
    if entity_type is not None:
        try:
            filters["entity_type"] = EntityType(entity_type)
        except ValueError:
            raise ValidationError(f"Invalid entity type {entity_type!r}", field="entity_type")
    if entity_id is not None:
        filters["entity_id"] = entity_id
    if start_date is not None:
        filters["created_at__gte"] = start_date
    if end_date is not None:
        filters["created_at__lte"] = end_date
    return filters

def get_audit_logs(
    store: Store,
    actor: Actor,
    user_id: Any = None,
    action: Any = None,
    entity_type: Any = None,
    entity_id: Any = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Tuple[List[AuditLog], int]:
    """
    Filtered audit entries, newest first.

    Returns:
        (entries on this page, total matching entries)
    """
    ensure_active(actor, "view the audit log")
    filters = _filters(user_id, action, entity_type, entity_id, start_date, end_date)
    return store.list_audit_logs(filters, visible_to=_visible_to(actor), limit=limit, offset=offset)

def get_audit_log(store: Store, actor: Actor, log_id: Any) -> AuditLog:
    ensure_active(actor, "view the audit log")
    entry = store.get("audit_log", log_id)
    if entry is None:
        raise NotFound("audit_log", log_id)
    if not can_view(actor, entry):
        logger.warning(f"⚠️  {actor.username} denied access to audit log {log_id}")
        raise PermissionDenied("You cannot view this audit entry")
    return entry

def get_audit_logs_for_entity(store: Store, actor: Actor, entity_type: Any, entity_id: Any) -> List[AuditLog]:
    """History of one task, group, file or user"""
    if as_uuid(entity_id) is None:
        raise ValidationError(f"Invalid entity id {entity_id!r}", field="entity_id")
    entries, _ = get_audit_logs(store, actor, entity_type=entity_type, entity_id=entity_id)
    return entries

def get_audit_logs_for_user(
    store: Store,
    actor: Actor,
    user_id: Any,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Tuple[List[AuditLog], int]:
    """Everything a user did"""
    if not is_admin_or_mod(actor) and as_uuid(user_id) != actor.user_id:
        raise PermissionDenied("You can only view your own history")
    return get_audit_logs(store, actor, user_id=user_id, limit=limit, offset=offset)

def get_recent_audit_logs(store: Store, actor: Actor, limit: int = RECENT_LIMIT) -> List[AuditLog]:
    entries, _ = get_audit_logs(store, actor, limit=limit)
    return entries

def get_audit_stats(store: Store, actor: Actor) -> Dict[str, Any]:
    """Entry counts: total, today (UTC), and per action (admin/mod)"""
    ensure_active(actor, "view audit statistics")
    if not is_admin_or_mod(actor):
        raise PermissionDenied("Only admins and mods can view audit statistics")

    today_start = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        "total_events": store.count("audit_log"),
        "events_today": store.count("audit_log", {"created_at__gte": today_start}),
        "by_action": {action.value: store.count("audit_log", {"action": action}) for action in AuditAction},
    }

def describe(entry: AuditLog) -> Dict[str, Any]:
    """Entry plus its field-level changes and a readable message"""
    changes: List[FieldChange] = diff_fields(entry.old_values, entry.new_values)
    return {
        **entry.to_dict(),
        "changes": [
            {"field": c.field, "old_value": c.old_value, "new_value": c.new_value} for c in changes
        ],
        "message": format_message(entry),
    }
