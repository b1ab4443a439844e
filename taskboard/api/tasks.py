"""
Tasks API - Task CRUD, field locks and attachments
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from uuid import UUID
import logging

from taskboard.schemas import TaskCreate, TaskUpdate, TaskResponse, TaskFileCreate, TaskFileResponse
from taskboard.core.dependencies import get_current_actor, get_store
from taskboard.services import files, tasks
from taskboard.services.identity import Actor
from taskboard.services.permissions import ensure_active
from taskboard.store import Store

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("", response_model=List[TaskResponse])
def list_tasks(
    group_id: Optional[UUID] = Query(None, description="Only tasks of this group"),
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Tasks in display order"""
    ensure_active(actor, "view the board")
    return tasks.list_tasks(store, group_id)

@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """
    Create a task at the end of its group.

    The creator becomes the owner. review and status=Done are only
    accepted when the creator is the named reviewer.
    """
    logger.info(f"➡️  Create task request from: {actor.username}")
    return tasks.create_task(store, actor, task_data.model_dump(exclude_unset=True))

@router.delete("/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_file(
    file_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    logger.info(f"➡️  Remove file {file_id} request from: {actor.username}")
    files.remove_file(store, actor, file_id)

@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    ensure_active(actor, "view the board")
    return tasks.get_task(store, task_id)

@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: UUID,
    task_data: TaskUpdate,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """
    Update several fields at once.

    All or nothing: if any changed field is denied, nothing is written and
    the 403 response lists every denied field.
    """
    logger.info(f"➡️  Update task {task_id} request from: {actor.username}")
    return tasks.update_task(store, actor, task_id, task_data.model_dump(exclude_unset=True))

@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    logger.info(f"➡️  Delete task {task_id} request from: {actor.username}")
    tasks.delete_task(store, actor, task_id)

@router.post("/{task_id}/locks/{field_name}", response_model=TaskResponse)
def lock_field(
    task_id: UUID,
    field_name: str,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """Lock one field against member edits (admin/mod)"""
    logger.info(f"➡️  Lock {field_name} on task {task_id} request from: {actor.username}")
    return tasks.lock_task_field(store, actor, task_id, field_name)

@router.delete("/{task_id}/locks/{field_name}", response_model=TaskResponse)
def unlock_field(
    task_id: UUID,
    field_name: str,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    logger.info(f"➡️  Unlock {field_name} on task {task_id} request from: {actor.username}")
    return tasks.unlock_task_field(store, actor, task_id, field_name)

@router.get("/{task_id}/files", response_model=List[TaskFileResponse])
def list_files(
    task_id: UUID,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    ensure_active(actor, "view the board")
    return files.list_files(store, task_id)

@router.post("/{task_id}/files", response_model=TaskFileResponse, status_code=status.HTTP_201_CREATED)
def attach_file(
    task_id: UUID,
    file_data: TaskFileCreate,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    logger.info(f"➡️  Attach file to task {task_id} request from: {actor.username}")
    return files.attach_file(store, actor, task_id, file_data.name, file_data.size, file_data.type, file_data.url)
