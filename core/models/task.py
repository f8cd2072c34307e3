# =============================================================================
# core/models/task.py - Care Task Schemas
# =============================================================================
# These models define the API contract for care tasks:
# - Task: A single actionable item, derived from a document or added manually
# - TaskCreate: Input for adding a task by hand
# - TaskUpdate: Partial update (assignment, status, edits)
#
# Status is a freely settable field: any status may follow any other.
# The one derived rule is assignment: setting an assignee makes the task
# "assigned", clearing it makes the task "pending".
# =============================================================================

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from lib.utils import new_id, utc_now


class TaskPriority(str, Enum):
    """How soon a task needs attention."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    """
    Where a task sits on the board.

    - pending: Nobody has picked it up
    - assigned: A member is responsible for it
    - in_progress: The assignee has started
    - completed: Done (completed_at is stamped)
    """
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Task(BaseModel):
    """
    A care task belonging to one family.

    Example:
        {
            "id": "3f0c...",
            "family_id": "demo-family",
            "document_id": "9a1b...",
            "title": "Pick up Lisinopril Prescription",
            "priority": "medium",
            "status": "pending",
            "assigned_to": null,
            "due_date": "2024-03-01T00:00:00Z"
        }
    """

    id: str = Field(default_factory=new_id, description="Unique task identifier")
    family_id: str = Field(..., min_length=1, description="Owning family")
    document_id: str | None = Field(
        default=None,
        description="Source document, if the task came from an analysis"
    )
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    assigned_to: str | None = Field(default=None, description="Member ID of the assignee")
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def with_assignee(self, member_id: str | None, now: datetime | None = None) -> Task:
        """
        Return a copy assigned to `member_id` (or unassigned when None).

        Status is derived purely from whether an assignee is present.
        """
        status = TaskStatus.ASSIGNED if member_id else TaskStatus.PENDING
        return self.with_status(status, now=now).model_copy(
            update={"assigned_to": member_id or None}
        )

    def with_status(self, status: TaskStatus, now: datetime | None = None) -> Task:
        """
        Return a copy with a new status; completed_at tracks completion.

        Completing an already completed task keeps the original completed_at.
        """
        now = now or utc_now()
        status = TaskStatus(status)
        if status != TaskStatus.COMPLETED:
            completed_at = None
        elif self.status == TaskStatus.COMPLETED and self.completed_at is not None:
            completed_at = self.completed_at
        else:
            completed_at = now
        return self.model_copy(update={
            "status": status,
            "completed_at": completed_at,
            "updated_at": now,
        })

    def to_row(self) -> dict[str, Any]:
        """JSON-safe dict matching the `tasks` table columns."""
        return self.model_dump(mode="json")


class TaskCreate(BaseModel):
    """Schema for adding a task by hand."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    assigned_to: str | None = None

    def to_task(self, family_id: str) -> Task:
        task = Task(
            family_id=family_id,
            title=self.title,
            description=self.description,
            priority=self.priority,
            due_date=self.due_date,
        )
        return task.with_assignee(self.assigned_to) if self.assigned_to else task


class TaskUpdate(BaseModel):
    """
    Partial update for a task.

    Only fields present in the request are applied. If `assigned_to` is sent
    without `status`, the status is derived from the assignee.

    Example:
        {"assigned_to": "member-2"}          -> status becomes "assigned"
        {"assigned_to": null}                -> status becomes "pending"
        {"status": "completed"}              -> completed_at is stamped
    """

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    assigned_to: str | None = None
    due_date: datetime | None = None

    def apply_to(self, task: Task, now: datetime | None = None) -> Task:
        """Return `task` with this update applied."""
        now = now or utc_now()
        fields = self.model_fields_set

        edits = {
            name: getattr(self, name)
            for name in ("title", "description", "priority", "due_date")
            if name in fields
        }
        if "title" in edits and edits["title"] is None:
            del edits["title"]
        if "priority" in edits and edits["priority"] is None:
            del edits["priority"]

        updated = task.model_copy(update={**edits, "updated_at": now})

        if "assigned_to" in fields:
            updated = updated.with_assignee(self.assigned_to, now=now)
        if "status" in fields and self.status is not None:
            updated = updated.with_status(self.status, now=now)
        return updated
