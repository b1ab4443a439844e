"""
Task Group Mutation Pipeline - admin/mod only
"""

from typing import Any, Dict, List, Mapping, Sequence
import logging

from taskboard.core.exceptions import NotFound, StoreFailure, ValidationError
from taskboard.models import AuditAction, EntityType, TaskGroup, DEFAULT_GROUP_COLOR
from taskboard.services.identity import Actor
from taskboard.services.permissions import ensure_can_manage_groups
from taskboard.services.tasks import coerce_date
from taskboard.store import Store, as_uuid
from taskboard.utils.audit_logger import record_audit

logger = logging.getLogger(__name__)

GROUP_FIELDS = frozenset({"name", "color", "start_date", "end_date", "is_expanded", "sort_order"})
DEFAULT_GROUP_NAME = "New Group"

def coerce_group_values(values: Mapping[str, Any]) -> Dict[str, Any]:
    coerced = {}
    for field, value in values.items():
        if field not in GROUP_FIELDS:
            raise ValidationError(f"Unknown group field '{field}'", field=field)
        if field == "name":
            value = (value or "").strip()
            if not value:
                raise ValidationError("Group name cannot be empty", field=field)
        elif field == "color":
            value = value or DEFAULT_GROUP_COLOR
        elif field in ("start_date", "end_date"):
            value = coerce_date(field, value)
        elif field == "is_expanded":
            value = bool(value)
        elif field == "sort_order":
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid sort_order {value!r}", field=field)
        coerced[field] = value
    return coerced

def create_group(store: Store, actor: Actor, fields: Mapping[str, Any]) -> TaskGroup:
    """New group, appended after the existing ones unless sort_order is given"""
    ensure_can_manage_groups(actor)

    values = coerce_group_values(fields)
    values.setdefault("name", DEFAULT_GROUP_NAME)
    values.setdefault("sort_order", store.count("group"))
    values["created_by"] = actor.user_id

    group = store.insert("group", values)
    logger.info(f"✅ Group created: {group.id} '{group.name}' by {actor.username}")

    record_audit(store, actor, AuditAction.CREATE, EntityType.GROUP,
                 entity_id=group.id, entity_name=group.name,
                 old_values=None, new_values=group.to_dict())
    return group

def update_group(store: Store, actor: Actor, group_id: Any, changes: Mapping[str, Any]) -> TaskGroup:
    ensure_can_manage_groups(actor)
    if not changes:
        raise ValidationError("No changes submitted")
    values = coerce_group_values(changes)

    group = store.get("group", group_id)
    if group is None:
        raise NotFound("group", group_id)
    pre_image = group.to_dict()

    updated = store.update("group", group.id, values)
    logger.info(f"✅ Group {group.id} updated by {actor.username}: {', '.join(values)}")

    record_audit(store, actor, AuditAction.UPDATE, EntityType.GROUP,
                 entity_id=group.id, entity_name=updated.name,
                 old_values=pre_image, new_values=values)
    return updated

def delete_group(store: Store, actor: Actor, group_id: Any) -> None:
    """
    Delete a group and, through the store's cascade, all of its tasks.
    The audit entry is skipped when the pre-image could not be loaded, and
    deleting a group that is already gone is a no-op.
    """
    ensure_can_manage_groups(actor)

    try:
        pre_image = store.get("group", group_id)
    except StoreFailure:
        logger.warning(f"⚠️  Could not load group {group_id} before delete - audit will be skipped")
        pre_image = None
    snapshot = pre_image.to_dict() if pre_image is not None else None

    deleted = store.delete("group", group_id)
    if deleted:
        logger.info(f"🗑️  Group {group_id} deleted by {actor.username}")
    elif snapshot is not None:
        raise NotFound("group", group_id)

    if snapshot is None:
        logger.info(f"🗑️  Group {group_id} delete by {actor.username} (no pre-image, audit skipped)")
        return
    record_audit(store, actor, AuditAction.DELETE, EntityType.GROUP,
                 entity_id=snapshot["id"], entity_name=snapshot["name"],
                 old_values=snapshot, new_values=None)

def reorder_groups(store: Store, actor: Actor, group_ids: Sequence[Any]) -> List[TaskGroup]:
    """
    Give each listed group sort_order = its index.

    Each row is written on its own: a failure at item N is raised as-is and
    leaves items before N updated and items after N untouched.
    """
    ensure_can_manage_groups(actor)
    if not group_ids:
        raise ValidationError("Group order cannot be empty", field="order")

    keys = []
    for group_id in group_ids:
        key = as_uuid(group_id)
        if key is None:
            raise ValidationError(f"Invalid group id {group_id!r}", field="order")
        keys.append(key)
    if len(set(keys)) != len(keys):
        raise ValidationError("Group order contains duplicates", field="order")

    groups = []
    for index, key in enumerate(keys):
        groups.append(store.update("group", key, {"sort_order": index}))
    logger.info(f"↕️  {len(groups)} groups reordered by {actor.username}")

    record_audit(store, actor, AuditAction.UPDATE, EntityType.GROUP,
                 entity_id=None, entity_name="Group order",
                 old_values=None, new_values={"order": [str(key) for key in keys]})
    return groups

def get_group(store: Store, group_id: Any) -> TaskGroup:
    group = store.get("group", group_id)
    if group is None:
        raise NotFound("group", group_id)
    return group

def list_groups(store: Store) -> List[TaskGroup]:
    return store.list("group", order_by="sort_order")
