"""
Users API - Approval, roles and account locks
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from uuid import UUID
import logging

from taskboard.schemas import UserResponse, UserUpdate, UserApprove
from taskboard.models import UserRole, UserStatus
from taskboard.core.dependencies import get_current_actor, get_store
from taskboard.services import users
from taskboard.services.identity import Actor
from taskboard.store import Store

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=List[UserResponse])
def get_all_users(
    status_filter: Optional[UserStatus] = Query(None, alias="status", description="Filter by account status"),
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """
    All accounts, oldest first.

    Any active user may list accounts (to pick assignees and reviewers);
    filtering by status is admin only.
    """
    logger.info(f"➡️  Get users request from: {actor.username}")
    result = users.list_users(store, actor, status=status_filter, role=role)
    logger.info(f"✅ Returning {len(result)} users")
    return result

@router.get("/pending", response_model=List[UserResponse])
def get_pending_users(
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Registrations waiting for approval (admin only)"""
    return users.list_pending_users(store, actor)

@router.get("/{user_id}", response_model=UserResponse)
def get_user_by_id(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    return users.get_user(store, actor, user_id)

@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Change role and/or status (admin only)"""
    logger.info(f"➡️  Update user {user_id} request from: {actor.username}")
    return users.update_user(store, actor, user_id, user_data.model_dump(exclude_unset=True))

@router.post("/{user_id}/approve", response_model=UserResponse)
def approve_user(
    user_id: UUID,
    approval: Optional[UserApprove] = None,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Activate a pending account with the given role (admin only, member by default)"""
    role = approval.role if approval else UserRole.MEMBER
    logger.info(f"➡️  Approve user {user_id} as {role.value} request from: {actor.username}")
    return users.approve_user(store, actor, user_id, role)

@router.post("/{user_id}/reject", status_code=status.HTTP_204_NO_CONTENT)
def reject_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Delete a pending registration (admin only)"""
    logger.info(f"➡️  Reject user {user_id} request from: {actor.username}")
    users.reject_user(store, actor, user_id)

@router.post("/{user_id}/lock", response_model=UserResponse)
def lock_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """
    Lock an active account (admin/mod).
    Mods cannot lock admins, and nobody can lock themselves.
    """
    logger.info(f"➡️  Lock user {user_id} request from: {actor.username}")
    return users.lock_user(store, actor, user_id)

@router.post("/{user_id}/unlock", response_model=UserResponse)
def unlock_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    logger.info(f"➡️  Unlock user {user_id} request from: {actor.username}")
    return users.unlock_user(store, actor, user_id)

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Permanently delete an account (admin only)"""
    logger.info(f"➡️  Delete user {user_id} request from: {actor.username}")
    users.delete_user(store, actor, user_id)
