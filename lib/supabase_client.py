# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for the three family-scoped tables:
# - documents: uploaded files and their analysis result
# - tasks: care tasks materialized from analyses
# - members: people in a family who can be assigned tasks
#
# Every query filters on family_id; there are no cross-family reads.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   tasks = SupabaseClient.fetch_tasks(family_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import ApplicationError, normalize_uuid

# Set up logging for this module
logger = logging.getLogger(__name__)


class SupabaseClientError(ApplicationError):
    """
    Error during Supabase operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        SupabaseClient.insert_tasks([task.to_row() for task in tasks])
        members = SupabaseClient.fetch_members("family-123")
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
                raise SupabaseClientError(
                    message="Supabase is not configured",
                    code="CLIENT_NOT_CONFIGURED",
                    suggestion="Set SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    @classmethod
    def insert_document(cls, row: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a document row.

        Returns:
            The inserted row as stored

        Raises:
            SupabaseClientError: If the insert fails
        """
        client = cls.get_client()

        try:
            response = client.table("documents").insert(row).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert document: {e}",
                code="INSERT_DOCUMENT_FAILED",
                details={"family_id": row.get("family_id")}
            )

        if not response.data:
            raise SupabaseClientError(
                message="Document insert returned no data",
                code="INSERT_DOCUMENT_FAILED",
                details={"family_id": row.get("family_id")}
            )

        logger.info(f"Inserted document {response.data[0].get('id')}")
        return response.data[0]

    @classmethod
    def fetch_documents(cls, family_id: str | UUID) -> list[dict[str, Any]]:
        """Fetch a family's documents, newest first."""
        client = cls.get_client()
        family_id_str = normalize_uuid(family_id)

        try:
            response = (
                client.table("documents")
                .select("*")
                .eq("family_id", family_id_str)
                .order("created_at", desc=True)
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch documents: {e}",
                code="FETCH_DOCUMENTS_FAILED",
                details={"family_id": family_id_str}
            )

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    @classmethod
    def insert_tasks(cls, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Insert task rows in a single request.

        An empty list is a no-op.

        Raises:
            SupabaseClientError: If the insert fails
        """
        if not rows:
            return []

        client = cls.get_client()

        try:
            response = client.table("tasks").insert(rows).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert tasks: {e}",
                code="INSERT_TASKS_FAILED",
                details={"count": len(rows)}
            )

        logger.info(f"Inserted {len(response.data or [])} tasks")
        return response.data or []

    @classmethod
    def fetch_tasks(cls, family_id: str | UUID) -> list[dict[str, Any]]:
        """Fetch every task in a family, oldest first."""
        client = cls.get_client()
        family_id_str = normalize_uuid(family_id)

        try:
            response = (
                client.table("tasks")
                .select("*")
                .eq("family_id", family_id_str)
                .order("created_at")
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch tasks: {e}",
                code="FETCH_TASKS_FAILED",
                details={"family_id": family_id_str}
            )

    @classmethod
    def fetch_task(cls, family_id: str | UUID, task_id: str) -> dict[str, Any] | None:
        """
        Fetch one task, scoped to its family.

        Returns:
            Task row, or None if not found
        """
        client = cls.get_client()
        family_id_str = normalize_uuid(family_id)

        try:
            response = (
                client.table("tasks")
                .select("*")
                .eq("family_id", family_id_str)
                .eq("id", task_id)
                .limit(1)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch task: {e}",
                code="FETCH_TASK_FAILED",
                details={"family_id": family_id_str, "task_id": task_id}
            )

    @classmethod
    def update_task(
        cls,
        family_id: str | UUID,
        task_id: str,
        updates: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Patch a task row.

        Returns:
            Updated row, or None if no row matched
        """
        client = cls.get_client()
        family_id_str = normalize_uuid(family_id)

        try:
            response = (
                client.table("tasks")
                .update(updates)
                .eq("family_id", family_id_str)
                .eq("id", task_id)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update task: {e}",
                code="UPDATE_TASK_FAILED",
                details={"family_id": family_id_str, "task_id": task_id}
            )

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_members(cls, family_id: str | UUID) -> list[dict[str, Any]]:
        """Fetch a family's members in join order."""
        client = cls.get_client()
        family_id_str = normalize_uuid(family_id)

        try:
            response = (
                client.table("members")
                .select("*")
                .eq("family_id", family_id_str)
                .order("created_at")
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch members: {e}",
                code="FETCH_MEMBERS_FAILED",
                details={"family_id": family_id_str}
            )

    @classmethod
    def fetch_member(cls, family_id: str | UUID, member_id: str) -> dict[str, Any] | None:
        """
        Fetch one member by id, scoped to its family.

        Returns:
            Member row, or None if not found
        """
        client = cls.get_client()
        family_id_str = normalize_uuid(family_id)

        try:
            response = (
                client.table("members")
                .select("*")
                .eq("family_id", family_id_str)
                .eq("id", member_id)
                .limit(1)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch member: {e}",
                code="FETCH_MEMBER_FAILED",
                details={"family_id": family_id_str, "member_id": member_id}
            )

    @classmethod
    def fetch_member_by_user(cls, family_id: str | UUID, user_id: str) -> dict[str, Any] | None:
        """Fetch the member row linking an auth user to a family, or None."""
        client = cls.get_client()
        family_id_str = normalize_uuid(family_id)

        try:
            response = (
                client.table("members")
                .select("*")
                .eq("family_id", family_id_str)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to look up membership: {e}",
                code="FETCH_MEMBERSHIP_FAILED",
                details={"family_id": family_id_str, "user_id": user_id}
            )

    @classmethod
    def insert_member(cls, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a member row and return it."""
        client = cls.get_client()

        try:
            response = client.table("members").insert(row).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert member: {e}",
                code="INSERT_MEMBER_FAILED",
                details={"family_id": row.get("family_id")}
            )

        if not response.data:
            raise SupabaseClientError(
                message="Member insert returned no data",
                code="INSERT_MEMBER_FAILED",
                details={"family_id": row.get("family_id")}
            )
        return response.data[0]
