# =============================================================================
# core/services/family_service.py - Family Data Business Logic
# =============================================================================
# Reads and writes the family-scoped tables (documents, tasks, members).
# Separates HTTP concerns from database/business logic.
#
# Every operation that takes a user_id first checks that the user is a
# member of the family. Non-members see the family as missing.
# =============================================================================

import logging

from lib.supabase_client import SupabaseClient, SupabaseClientError
from core.models.document import DocumentRecord
from core.models.member import Member, MemberCreate
from core.models.task import Task, TaskCreate, TaskUpdate
from app.exceptions import (
    FamilyNotFoundError,
    InvalidAssigneeError,
    PersistenceError,
    TaskNotFoundError,
)

logger = logging.getLogger(__name__)


class FamilyService:
    """
    Service for family data operations.

    Provides a clean interface between API routes and database. Supabase
    errors surface as PersistenceError; nothing is retried.
    """

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    @staticmethod
    def require_member(family_id: str, user_id: str) -> Member:
        """
        Return the caller's member row in a family.

        Raises:
            FamilyNotFoundError: If the user has not joined the family
            PersistenceError: If the lookup fails
        """
        try:
            row = SupabaseClient.fetch_member_by_user(family_id, user_id)
        except SupabaseClientError as e:
            raise PersistenceError("check membership", e.message)

        if row is None:
            # Don't reveal that the family exists
            logger.warning(f"User {user_id} denied access to family {family_id}")
            raise FamilyNotFoundError(family_id)

        return Member.model_validate(row)

    @staticmethod
    def check_assignee(family_id: str, member_id: str | None) -> None:
        """Raise InvalidAssigneeError unless member_id is None or in the family."""
        if member_id is None:
            return

        try:
            row = SupabaseClient.fetch_member(family_id, member_id)
        except SupabaseClientError as e:
            raise PersistenceError("fetch member", e.message)

        if row is None:
            raise InvalidAssigneeError(member_id, family_id)

    # -------------------------------------------------------------------------
    # Analysis Results
    # -------------------------------------------------------------------------

    @staticmethod
    def save_analysis(document: DocumentRecord, tasks: list[Task]) -> None:
        """
        Insert a document row and then its task rows.

        Raises:
            PersistenceError: If either insert fails
        """
        try:
            SupabaseClient.insert_document(document.to_row())
        except SupabaseClientError as e:
            logger.error(f"Failed to store document {document.id}: {e}")
            raise PersistenceError("store document", e.message)

        try:
            SupabaseClient.insert_tasks([task.to_row() for task in tasks])
        except SupabaseClientError as e:
            logger.error(f"Failed to store {len(tasks)} tasks for document {document.id}: {e}")
            raise PersistenceError("store tasks", e.message)

        logger.info(f"Stored document {document.id} with {len(tasks)} tasks for family {document.family_id}")

    @staticmethod
    def list_documents(family_id: str, user_id: str | None = None) -> list[DocumentRecord]:
        if user_id:
            FamilyService.require_member(family_id, user_id)

        try:
            rows = SupabaseClient.fetch_documents(family_id)
        except SupabaseClientError as e:
            raise PersistenceError("fetch documents", e.message)
        return [DocumentRecord.model_validate(row) for row in rows]

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    @staticmethod
    def list_tasks(family_id: str, user_id: str | None = None) -> list[Task]:
        if user_id:
            FamilyService.require_member(family_id, user_id)

        try:
            rows = SupabaseClient.fetch_tasks(family_id)
        except SupabaseClientError as e:
            raise PersistenceError("fetch tasks", e.message)
        return [Task.model_validate(row) for row in rows]

    @staticmethod
    def add_task(family_id: str, data: TaskCreate, user_id: str | None = None) -> Task:
        """Insert a manually created task."""
        if user_id:
            FamilyService.require_member(family_id, user_id)
        FamilyService.check_assignee(family_id, data.assigned_to)

        task = data.to_task(family_id)
        try:
            SupabaseClient.insert_tasks([task.to_row()])
        except SupabaseClientError as e:
            raise PersistenceError("store task", e.message)

        logger.info(f"Added task {task.id} to family {family_id}")
        return task

    @staticmethod
    def update_task(
        family_id: str,
        task_id: str,
        update: TaskUpdate,
        user_id: str | None = None,
    ) -> Task:
        """
        Apply a partial update to a stored task.

        Raises:
            FamilyNotFoundError: If user_id is given and not a family member
            InvalidAssigneeError: If assigned_to names someone outside the family
            TaskNotFoundError: If the task doesn't exist in this family
            PersistenceError: If the read or write fails
        """
        if user_id:
            FamilyService.require_member(family_id, user_id)
        if "assigned_to" in update.model_fields_set:
            FamilyService.check_assignee(family_id, update.assigned_to)

        try:
            row = SupabaseClient.fetch_task(family_id, task_id)
        except SupabaseClientError as e:
            raise PersistenceError("fetch task", e.message)

        if row is None:
            raise TaskNotFoundError(task_id, family_id)

        updated = update.apply_to(Task.model_validate(row))
        changes = {
            key: value
            for key, value in updated.to_row().items()
            if key not in ("id", "family_id", "created_at")
        }

        try:
            stored = SupabaseClient.update_task(family_id, task_id, changes)
        except SupabaseClientError as e:
            raise PersistenceError("update task", e.message)

        if stored is None:
            raise TaskNotFoundError(task_id, family_id)

        logger.info(f"Updated task {task_id}: status={updated.status.value}, assigned_to={updated.assigned_to}")
        return Task.model_validate(stored)

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    @staticmethod
    def list_members(family_id: str, user_id: str | None = None) -> list[Member]:
        if user_id:
            FamilyService.require_member(family_id, user_id)

        try:
            rows = SupabaseClient.fetch_members(family_id)
        except SupabaseClientError as e:
            raise PersistenceError("fetch members", e.message)
        return [Member.model_validate(row) for row in rows]

    @staticmethod
    def add_member(family_id: str, data: MemberCreate, user_id: str | None = None) -> Member:
        """
        Add a member to a family.

        The first member of a new family can only be the caller themselves;
        after that only existing members may add people.
        """
        if user_id:
            try:
                existing = SupabaseClient.fetch_members(family_id)
            except SupabaseClientError as e:
                raise PersistenceError("fetch members", e.message)

            if existing:
                FamilyService.require_member(family_id, user_id)
            elif data.user_id != user_id:
                logger.warning(f"User {user_id} tried to seed family {family_id} with another user")
                raise FamilyNotFoundError(family_id)

        member = data.to_member(family_id)
        try:
            stored = SupabaseClient.insert_member(member.to_row())
        except SupabaseClientError as e:
            raise PersistenceError("store member", e.message)

        logger.info(f"Added member {member.id} ({member.role.value}) to family {family_id}")
        return Member.model_validate(stored)
