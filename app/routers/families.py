# =============================================================================
# app/routers/families.py - Stored Family Data Endpoints
# =============================================================================
# Read and update the documents, tasks and members stored in Supabase.
# Only available when PERSIST_RESULTS is on; otherwise every route answers
# 409 and the client keeps its board in memory. Callers must be members of
# the family; everyone else gets 404.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from fastapi.concurrency import run_in_threadpool

from app.auth import AuthUser, get_current_user
from app.dependencies import FamilyServiceDep
from core.models.document import DocumentRecord
from core.models.member import Member, MemberCreate
from core.models.task import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

FamilyId = Annotated[str, Path(min_length=1, description="Family ID")]
TaskId = Annotated[str, Path(min_length=1, description="Task ID")]


# =============================================================================
# Tasks
# =============================================================================

@router.get("/{family_id}/tasks", response_model=list[Task])
async def list_tasks(
    family_id: FamilyId,
    service: FamilyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """All tasks in the family, newest first."""
    return await run_in_threadpool(service.list_tasks, family_id, user_id=user.id)


@router.post("/{family_id}/tasks", response_model=Task, status_code=201)
async def create_task(
    family_id: FamilyId,
    body: TaskCreate,
    service: FamilyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Add a task by hand. Giving an assignee makes it `assigned`."""
    return await run_in_threadpool(service.add_task, family_id, body, user_id=user.id)


@router.patch("/{family_id}/tasks/{task_id}", response_model=Task)
async def update_task(
    family_id: FamilyId,
    task_id: TaskId,
    body: TaskUpdate,
    service: FamilyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Partially update a task.

    Sending `assigned_to` without `status` derives the status from the
    assignee: a member means `assigned`, null means `pending`. An explicit
    `status` always wins.
    """
    logger.info(f"User {user.id} updating task {task_id}: {sorted(body.model_fields_set)}")
    return await run_in_threadpool(service.update_task, family_id, task_id, body, user_id=user.id)


# =============================================================================
# Members
# =============================================================================

@router.get("/{family_id}/members", response_model=list[Member])
async def list_members(
    family_id: FamilyId,
    service: FamilyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Everyone in the family."""
    return await run_in_threadpool(service.list_members, family_id, user_id=user.id)


@router.post("/{family_id}/members", response_model=Member, status_code=201)
async def add_member(
    family_id: FamilyId,
    body: MemberCreate,
    service: FamilyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Add a member; an initials avatar is generated if none is given.

    A family with no members yet can only be started by adding yourself.
    """
    return await run_in_threadpool(service.add_member, family_id, body, user_id=user.id)


# =============================================================================
# Documents
# =============================================================================

@router.get("/{family_id}/documents", response_model=list[DocumentRecord])
async def list_documents(
    family_id: FamilyId,
    service: FamilyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Uploaded documents with their stored analyses, newest first."""
    return await run_in_threadpool(service.list_documents, family_id, user_id=user.id)
