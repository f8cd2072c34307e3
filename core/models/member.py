# =============================================================================
# core/models/member.py - Family Member Schemas
# =============================================================================
# A member is a person in a family who can be assigned tasks.
# Members are only ever created by explicit user action.
# =============================================================================

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from lib.utils import generate_avatar_url, new_id, utc_now


class MemberRole(str, Enum):
    """Admins manage the family; members work on tasks."""
    ADMIN = "admin"
    MEMBER = "member"


class Member(BaseModel):
    """A person associated with a family."""

    id: str = Field(default_factory=new_id)
    family_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1, description="Auth user behind this member")
    name: str = Field(..., min_length=1, max_length=200)
    email: str | None = None
    avatar_url: str | None = None
    role: MemberRole = MemberRole.MEMBER
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_row(self) -> dict[str, Any]:
        """JSON-safe dict matching the `members` table columns."""
        return self.model_dump(mode="json")


class MemberCreate(BaseModel):
    """
    Schema for adding a member to a family.

    Example:
        {"user_id": "a1b2...", "name": "Sarah Johnson", "role": "admin"}
    """

    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    email: str | None = None
    avatar_url: str | None = None
    role: MemberRole = MemberRole.MEMBER

    def to_member(self, family_id: str) -> Member:
        """Build the stored member, generating an initials avatar if needed."""
        return Member(
            family_id=family_id,
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            avatar_url=self.avatar_url or generate_avatar_url(self.name),
            role=self.role,
        )
