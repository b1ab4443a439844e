"""
Groups API - Task groups (sprints), admin/mod for every change
"""

from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID
import logging

from taskboard.schemas import GroupCreate, GroupUpdate, GroupOrder, GroupResponse
from taskboard.core.dependencies import get_current_actor, get_store
from taskboard.services import groups
from taskboard.services.identity import Actor
from taskboard.services.permissions import ensure_active
from taskboard.store import Store

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=List[GroupResponse])
def list_groups(
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """All groups in display order"""
    ensure_active(actor, "view the board")
    return groups.list_groups(store)

@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    group_data: GroupCreate,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    logger.info(f"➡️  Create group request from: {actor.username}")
    return groups.create_group(store, actor, group_data.model_dump(exclude_none=True))

@router.put("/order", response_model=List[GroupResponse])
def reorder_groups(
    order: GroupOrder,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """
    Set sort_order of each group to its position in `order`.

    Rows are written one by one; on failure the groups before the failing
    one keep their new position.
    """
    logger.info(f"➡️  Reorder groups request from: {actor.username}")
    return groups.reorder_groups(store, actor, order.order)

@router.get("/{group_id}", response_model=GroupResponse)
def get_group(
    group_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    ensure_active(actor, "view the board")
    return groups.get_group(store, group_id)

@router.patch("/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: UUID,
    group_data: GroupUpdate,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    logger.info(f"➡️  Update group {group_id} request from: {actor.username}")
    return groups.update_group(store, actor, group_id, group_data.model_dump(exclude_unset=True))

@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Delete a group together with all of its tasks"""
    logger.info(f"➡️  Delete group {group_id} request from: {actor.username}")
    groups.delete_group(store, actor, group_id)
