# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the core models to ensure:
# - Model output is normalized (priorities, dates, categories, nulls)
# - Assignment derives status; explicit status changes are free
# - Partial updates only touch the fields that were sent
# - Models serialize to JSON properly
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from core.models import (
    AnalysisKind,
    AnalysisResult,
    AnalyzeResponse,
    ChatMessage,
    ChatRequest,
    DocumentRecord,
    DocumentType,
    MemberCreate,
    MemberRole,
    MessageRole,
    ProposedTask,
    Task,
    TaskCategory,
    TaskCreate,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_task(**overrides) -> Task:
    values = {"family_id": "family-1", "title": "Pick up prescription"}
    values.update(overrides)
    return Task(**values)


# =============================================================================
# Task Model Tests
# =============================================================================

class TestTask:
    """Tests for Task defaults and status rules."""

    def test_defaults(self):
        """A new task is pending, medium priority, unassigned, with an id."""
        task = make_task()

        assert task.status == TaskStatus.PENDING
        assert task.priority == TaskPriority.MEDIUM
        assert task.assigned_to is None
        assert task.completed_at is None
        assert task.id

    def test_ids_are_unique(self):
        assert make_task().id != make_task().id

    def test_family_id_required(self):
        with pytest.raises(ValidationError):
            Task(title="No family")

    def test_assigning_pending_task_makes_it_assigned(self):
        task = make_task().with_assignee("member-2", now=NOW)

        assert task.status == TaskStatus.ASSIGNED
        assert task.assigned_to == "member-2"
        assert task.updated_at == NOW

    def test_clearing_assignee_makes_task_pending(self):
        task = make_task().with_assignee("member-2").with_assignee(None)

        assert task.status == TaskStatus.PENDING
        assert task.assigned_to is None

    def test_assignment_overrides_in_progress(self):
        """Status follows assignee presence only, whatever it was before."""
        task = make_task(status=TaskStatus.IN_PROGRESS, assigned_to="member-1")

        assert task.with_assignee("member-3").status == TaskStatus.ASSIGNED
        assert task.with_assignee(None).status == TaskStatus.PENDING

    def test_any_status_may_follow_any_other(self):
        task = make_task()
        for status in [TaskStatus.COMPLETED, TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.ASSIGNED]:
            task = task.with_status(status)
            assert task.status == status

    def test_completion_stamps_and_clears_completed_at(self):
        done = make_task().with_status(TaskStatus.COMPLETED, now=NOW)
        assert done.completed_at == NOW

        reopened = done.with_status("in_progress")
        assert reopened.status == TaskStatus.IN_PROGRESS
        assert reopened.completed_at is None

    def test_completing_again_keeps_completed_at(self):
        later = NOW + timedelta(days=2)
        done = make_task().with_status(TaskStatus.COMPLETED, now=NOW)

        again = done.with_status(TaskStatus.COMPLETED, now=later)

        assert again.completed_at == NOW
        assert again.updated_at == later

    def test_repeated_completed_patch_keeps_completed_at(self):
        done = make_task().with_status(TaskStatus.COMPLETED, now=NOW)

        task = TaskUpdate(status="completed").apply_to(done, now=NOW + timedelta(hours=5))

        assert task.completed_at == NOW

    def test_with_methods_do_not_mutate(self):
        task = make_task()
        task.with_assignee("member-2")
        assert task.status == TaskStatus.PENDING

    def test_to_row_is_json_safe(self):
        due = datetime(2024, 3, 15, tzinfo=timezone.utc)
        row = make_task(due_date=due).to_row()

        assert row["status"] == "pending"
        assert row["priority"] == "medium"
        assert row["due_date"] == "2024-03-15T00:00:00Z"


class TestTaskCreate:
    """Tests for manually created tasks."""

    def test_without_assignee_is_pending(self):
        task = TaskCreate(title="Buy pill organizer").to_task("family-1")
        assert task.status == TaskStatus.PENDING
        assert task.family_id == "family-1"

    def test_with_assignee_is_assigned(self):
        task = TaskCreate(title="Buy pill organizer", assigned_to="member-1").to_task("family-1")
        assert task.status == TaskStatus.ASSIGNED
        assert task.assigned_to == "member-1"


class TestTaskUpdate:
    """Tests for partial task updates."""

    def test_assignee_only_derives_status(self):
        update = TaskUpdate(assigned_to="member-2")
        task = update.apply_to(make_task())

        assert task.assigned_to == "member-2"
        assert task.status == TaskStatus.ASSIGNED

    def test_null_assignee_derives_pending(self):
        update = TaskUpdate.model_validate({"assigned_to": None})
        task = update.apply_to(make_task(status=TaskStatus.ASSIGNED, assigned_to="member-2"))

        assert task.assigned_to is None
        assert task.status == TaskStatus.PENDING

    def test_explicit_status_wins_over_derived(self):
        update = TaskUpdate(assigned_to="member-2", status=TaskStatus.IN_PROGRESS)
        task = update.apply_to(make_task())

        assert task.status == TaskStatus.IN_PROGRESS
        assert task.assigned_to == "member-2"

    def test_unsent_fields_are_untouched(self):
        original = make_task(status=TaskStatus.ASSIGNED, assigned_to="member-2", priority=TaskPriority.HIGH)
        task = TaskUpdate(title="Renamed").apply_to(original, now=NOW)

        assert task.title == "Renamed"
        assert task.status == TaskStatus.ASSIGNED
        assert task.assigned_to == "member-2"
        assert task.priority == TaskPriority.HIGH
        assert task.updated_at == NOW

    def test_completed_status_stamps_completed_at(self):
        task = TaskUpdate(status="completed").apply_to(make_task(), now=NOW)
        assert task.completed_at == NOW


# =============================================================================
# Member Model Tests
# =============================================================================

class TestMember:
    """Tests for MemberCreate."""

    def test_generated_avatar_when_missing(self):
        member = MemberCreate(user_id="u-1", name="Sarah Johnson").to_member("family-1")

        assert member.avatar_url.startswith("https://api.dicebear.com/")
        assert "Sarah%20Johnson" in member.avatar_url
        assert member.role == MemberRole.MEMBER

    def test_explicit_avatar_is_kept(self):
        member = MemberCreate(
            user_id="u-1", name="Mike", avatar_url="https://example.com/mike.png", role="admin"
        ).to_member("family-1")

        assert member.avatar_url == "https://example.com/mike.png"
        assert member.role == MemberRole.ADMIN


# =============================================================================
# Analysis Model Tests
# =============================================================================

class TestProposedTask:
    """Tests for normalization of model-proposed tasks."""

    def test_priority_is_case_insensitive(self):
        assert ProposedTask(title="x", priority="HIGH").priority == TaskPriority.HIGH
        assert ProposedTask(title="x", priority=" Urgent ").priority == TaskPriority.URGENT

    def test_missing_priority_defaults_to_medium(self):
        assert ProposedTask(title="x").priority == TaskPriority.MEDIUM
        assert ProposedTask(title="x", priority=None).priority == TaskPriority.MEDIUM

    def test_invalid_priority_is_rejected(self):
        with pytest.raises(ValidationError):
            ProposedTask(title="x", priority="critical")

    @pytest.mark.parametrize("value", [None, "", "null", "N/A", "not specified", "next week"])
    def test_unusable_due_dates_become_none(self, value):
        assert ProposedTask(title="x", due_date=value).due_date is None

    def test_iso_due_date_is_parsed(self):
        assert ProposedTask(title="x", due_date="2024-03-15").due_date == date(2024, 3, 15)

    def test_datetime_string_due_date_keeps_the_day(self):
        assert ProposedTask(title="x", due_date="2024-03-15T09:30:00Z").due_date == date(2024, 3, 15)

    def test_unknown_category_becomes_other(self):
        assert ProposedTask(title="x", category="paperwork").category == TaskCategory.OTHER
        assert ProposedTask(title="x", category="Medication").category == TaskCategory.MEDICATION

    def test_blank_title_is_rejected(self):
        with pytest.raises(ValidationError):
            ProposedTask(title="   ")

    def test_title_longer_than_a_task_title_is_rejected(self):
        ProposedTask(title="x" * 500)
        with pytest.raises(ValidationError):
            ProposedTask(title="x" * 600)


class TestAnalysisResult:
    """Tests for the model output schema."""

    def test_valid_result(self, sample_analysis_dict):
        result = AnalysisResult.model_validate(sample_analysis_dict)

        assert result.document_type == DocumentType.DISCHARGE_SUMMARY
        assert result.patient_info.name == "John Doe"
        assert len(result.tasks) == 3
        assert result.tasks[1].priority == TaskPriority.MEDIUM

    def test_tasks_are_required(self):
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate({"document_type": "prescription", "summary": "..."})

    def test_unknown_document_type_becomes_other(self):
        result = AnalysisResult.model_validate({"document_type": "lab_report", "tasks": []})
        assert result.document_type == DocumentType.OTHER

    def test_nulls_are_tolerated(self):
        result = AnalysisResult.model_validate({
            "document_type": None,
            "patient_info": None,
            "tasks": [],
            "key_information": None,
            "summary": None,
        })

        assert result.patient_info.name is None
        assert result.key_information == []
        assert result.summary == ""


class TestAnalyzeResponse:
    """Tests for the /analyze envelope."""

    def _response(self, kind):
        return AnalyzeResponse(
            kind=kind,
            document=DocumentRecord(family_id="family-1", filename="a.pdf"),
            analysis=AnalysisResult(tasks=[]),
        )

    def test_is_demo_follows_kind(self):
        assert self._response(AnalysisKind.DEMO).is_demo is True
        assert self._response(AnalysisKind.ANALYSIS).is_demo is False
        assert self._response(AnalysisKind.FALLBACK).is_demo is False

    def test_serialized_envelope_has_kind_and_is_demo(self):
        data = self._response(AnalysisKind.ANALYSIS).model_dump(mode="json")

        assert data["success"] is True
        assert data["kind"] == "analysis"
        assert data["is_demo"] is False
        assert data["persisted"] is False
        assert data["warning"] is None


# =============================================================================
# Chat Model Tests
# =============================================================================

class TestChatRequest:
    """Tests for the chat request body."""

    def test_family_context_alias(self):
        request = ChatRequest.model_validate({
            "messages": [{"role": "user", "content": "Hi"}],
            "familyContext": {"tasks": []},
        })
        assert request.family_context == {"tasks": []}

    def test_messages_required(self):
        with pytest.raises(ValidationError):
            ChatRequest.model_validate({"messages": []})

    def test_invalid_role_rejected(self):
        with pytest.raises(ValidationError):
            ChatRequest.model_validate({"messages": [{"role": "doctor", "content": "Hi"}]})

    def test_to_openai(self):
        message = ChatMessage(role=MessageRole.USER, content="Hi")
        assert message.to_openai() == {"role": "user", "content": "Hi"}
