"""
Audit Logger Utility - Best-effort audit entries after a mutation
"""

from fastapi.encoders import jsonable_encoder
from typing import Optional, Dict, Any
import logging
import uuid

from taskboard.core.exceptions import AuditWriteFailure
from taskboard.models import AuditAction, EntityType

logger = logging.getLogger(__name__)

def snapshot(values: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """JSON-safe copy of a row snapshot (UUIDs, dates and enums become strings)"""
    if values is None:
        return None
    return jsonable_encoder(values)

def record_audit(
    store,
    actor,
    action: AuditAction,
    entity_type: EntityType,
    entity_id: Any = None,
    entity_name: Optional[str] = None,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Optional[uuid.UUID]:
    """
    Write one audit entry for a mutation that has already been committed.

    A failed audit write never fails the operation: it is logged here and
    None is returned. Call this only after the primary write succeeded.

    Args:
        store: Store the primary mutation went through
        actor: Actor (or User) who performed the action; None for anonymous
        action: What happened
        entity_type: What kind of row was affected
        entity_id: Affected row, None for bulk operations
        entity_name: Human-readable label, kept even after the row is gone
        old_values: Pre-image (or subset), None for creates
        new_values: Submitted delta or full row, None for deletes

    Returns:
        The new audit entry id, or None when the write failed

    Example:
        record_audit(store, actor, AuditAction.DELETE, EntityType.GROUP,
                     entity_id=group.id, entity_name=group.name,
                     old_values=group.to_dict())
    """
    user_id = getattr(actor, "user_id", None) or getattr(actor, "id", None)
    username = getattr(actor, "username", None)
    try:
        audit_id = store.log_audit(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            old_values=snapshot(old_values),
            new_values=snapshot(new_values),
            ip_address=ip_address,
            user_agent=user_agent,
        )
    except AuditWriteFailure as e:
        logger.error(
            f"❌ Audit write failed for {getattr(action, 'value', action)} "
            f"{getattr(entity_type, 'value', entity_type)} {entity_id} by {username}: {str(e)}",
            exc_info=True,
        )
        return None

    logger.info(f"✅ Audit log created: {getattr(action, 'value', action)} "
                f"{getattr(entity_type, 'value', entity_type)} by {username}")
    return audit_id
