"""
Audit Logs API - View audit trail and statistics
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import datetime
from uuid import UUID
import logging

from taskboard.schemas import AuditLogResponse, AuditLogDetailResponse, AuditLogListResponse, AuditStatsResponse
from taskboard.models import AuditAction, EntityType
from taskboard.core.dependencies import get_current_actor, get_store
from taskboard.services import audit
from taskboard.services.identity import Actor
from taskboard.store import Store

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/logs", response_model=AuditLogListResponse)
def get_audit_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    user_id: Optional[UUID] = Query(None, description="Filter by acting user"),
    action: Optional[AuditAction] = Query(None, description="Filter by action"),
    entity_type: Optional[EntityType] = Query(None, description="Filter by entity type"),
    entity_id: Optional[UUID] = Query(None, description="Filter by entity"),
    start_date: Optional[datetime] = Query(None, description="Filter from date"),
    end_date: Optional[datetime] = Query(None, description="Filter to date"),
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """
    Paginated audit logs, newest first.

    Admins and mods see everything. Members see all board activity and
    the user entries about or by themselves.
    """
    logger.info(f"➡️  Get audit logs request from: {actor.username}")
    logs, total = audit.get_audit_logs(
        store, actor,
        user_id=user_id, action=action, entity_type=entity_type, entity_id=entity_id,
        start_date=start_date, end_date=end_date,
        limit=page_size, offset=(page - 1) * page_size,
    )
    logger.info(f"✅ Returning {len(logs)} audit logs (total: {total})")
    return AuditLogListResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size
    )

@router.get("/logs/{log_id}", response_model=AuditLogDetailResponse)
def get_audit_log(
    log_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Single entry with its field-level changes and a readable message"""
    logger.info(f"➡️  Get audit log {log_id} request from: {actor.username}")
    entry = audit.get_audit_log(store, actor, log_id)
    return AuditLogDetailResponse.model_validate(audit.describe(entry))

@router.get("/entity/{entity_type}/{entity_id}", response_model=List[AuditLogResponse])
def get_entity_history(
    entity_type: EntityType,
    entity_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Full history of one task, group, file or user"""
    return audit.get_audit_logs_for_entity(store, actor, entity_type, entity_id)

@router.get("/recent", response_model=List[AuditLogResponse])
def get_recent(
    limit: int = Query(audit.RECENT_LIMIT, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    return audit.get_recent_audit_logs(store, actor, limit)

@router.get("/stats", response_model=AuditStatsResponse)
def get_audit_stats(
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Aggregated counts (admin/mod only)"""
    logger.info(f"➡️  Get audit stats request from: {actor.username}")
    return audit.get_audit_stats(store, actor)

@router.get("/my-history", response_model=AuditLogListResponse)
def get_my_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Everything the current user did"""
    logger.info(f"➡️  Get my history request from: {actor.username}")
    logs, total = audit.get_audit_logs_for_user(
        store, actor, actor.user_id, limit=page_size, offset=(page - 1) * page_size)
    return AuditLogListResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size
    )
