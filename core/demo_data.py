# =============================================================================
# core/demo_data.py - Canned Demo Content
# =============================================================================
# Deterministic sample data for DEMO_MODE and for seeding the task board:
# - demo_analysis_response(): what POST /analyze returns when DEMO_MODE is on
# - demo_members() / demo_board_tasks(): the demo family shown on the board
#
# Demo data is only ever produced when asked for explicitly. It is never a
# substitute for a failed analysis.
# =============================================================================

from datetime import date, datetime, time, timedelta, timezone

from core.models.analysis import (
    AnalysisKind,
    AnalysisResult,
    AnalyzeResponse,
    DocumentType,
    PatientInfo,
    ProposedTask,
    TaskCategory,
)
from core.models.document import DocumentRecord
from core.models.member import Member, MemberRole
from core.models.task import Task, TaskPriority, TaskStatus
from lib.utils import generate_avatar_url, new_id, utc_now

DEMO_FAMILY_ID = "demo-family"
DEMO_USER_ID = "demo-user"

# (title, description, priority, days until due, category)
_DEMO_ANALYSIS_TASKS = [
    (
        "Schedule Cardiologist Follow-up",
        "Patient needs a follow-up appointment with Dr. Smith in 2 weeks to review medication efficacy.",
        TaskPriority.HIGH,
        14,
        TaskCategory.APPOINTMENT,
    ),
    (
        "Pick up Lisinopril Prescription",
        "Prescription sent to CVS Pharmacy. Needs to be picked up by end of week.",
        TaskPriority.MEDIUM,
        2,
        TaskCategory.MEDICATION,
    ),
    (
        "Monitor Blood Pressure Daily",
        "Record blood pressure readings every morning and evening for the next 7 days.",
        TaskPriority.URGENT,
        7,
        TaskCategory.MONITORING,
    ),
]


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def demo_analysis_response(
    family_id: str,
    filename: str,
    now: datetime | None = None,
) -> AnalyzeResponse:
    """
    Build the DEMO_MODE response for an upload.

    Uses the caller's real family id and filename. Task ids are fresh on
    every call (task-demo-<id>); due dates are offsets from `now`.
    """
    now = now or utc_now()
    document_id = f"doc-demo-{int(now.timestamp() * 1000)}"

    proposed = [
        ProposedTask(
            title=title,
            description=description,
            priority=priority,
            due_date=now.date() + timedelta(days=days),
            category=category,
        )
        for title, description, priority, days, category in _DEMO_ANALYSIS_TASKS
    ]

    analysis = AnalysisResult(
        document_type=DocumentType.DISCHARGE_SUMMARY,
        patient_info=PatientInfo(name="John Doe", conditions=["Hypertension", "Type 2 Diabetes"]),
        tasks=proposed,
        key_information=["Patient stable but requires monitoring", "Medication dosage adjusted"],
        summary=(
            "This is a DEMO ANALYSIS returned because demo mode is enabled. "
            "It shows a typical discharge summary for a patient with hypertension."
        ),
    )

    tasks = [
        Task(
            id=f"task-demo-{new_id()}",
            family_id=family_id,
            document_id=document_id,
            title=item.title,
            description=item.description,
            priority=item.priority,
            due_date=_midnight(item.due_date),
            created_at=now,
            updated_at=now,
        )
        for item in proposed
    ]

    document = DocumentRecord(
        id=document_id,
        family_id=family_id,
        filename=filename or "demo_document.pdf",
        document_type=analysis.document_type.value,
        analysis_result=analysis.model_dump(mode="json"),
        created_at=now,
    )

    return AnalyzeResponse(
        kind=AnalysisKind.DEMO,
        document=document,
        tasks=tasks,
        analysis=analysis,
    )


# =============================================================================
# Demo Family (task board seed)
# =============================================================================

def demo_members(now: datetime | None = None) -> list[Member]:
    """Three members of the demo family; Sarah is the admin."""
    now = now or utc_now()
    people = [
        ("member-1", DEMO_USER_ID, "Sarah Johnson", "sarah@example.com", MemberRole.ADMIN),
        ("member-2", "demo-user-2", "Mike Johnson", "mike@example.com", MemberRole.MEMBER),
        ("member-3", "demo-user-3", "Emma Johnson", "emma@example.com", MemberRole.MEMBER),
    ]
    return [
        Member(
            id=member_id,
            family_id=DEMO_FAMILY_ID,
            user_id=user_id,
            name=name,
            email=email,
            avatar_url=generate_avatar_url(name),
            role=role,
            created_at=now,
            updated_at=now,
        )
        for member_id, user_id, name, email, role in people
    ]


def demo_board_tasks(now: datetime | None = None) -> list[Task]:
    """One task in each status so every board column has something in it."""
    now = now or utc_now()
    common = {"family_id": DEMO_FAMILY_ID, "document_id": "demo-doc-1", "updated_at": now}
    return [
        Task(
            id="task-1",
            title="Schedule follow-up appointment",
            description="Call Dr. Smith's office to schedule a follow-up appointment within 2 weeks",
            priority=TaskPriority.HIGH,
            status=TaskStatus.PENDING,
            due_date=now + timedelta(days=7),
            created_at=now,
            **common,
        ),
        Task(
            id="task-2",
            title="Pick up prescription",
            description="Collect new medication from pharmacy - bring insurance card",
            priority=TaskPriority.URGENT,
            status=TaskStatus.ASSIGNED,
            assigned_to="member-2",
            due_date=now + timedelta(days=2),
            created_at=now,
            **common,
        ),
        Task(
            id="task-3",
            title="Monitor blood pressure daily",
            description="Take blood pressure readings twice daily and log results",
            priority=TaskPriority.MEDIUM,
            status=TaskStatus.IN_PROGRESS,
            assigned_to="member-1",
            created_at=now,
            **common,
        ),
        Task(
            id="task-4",
            title="Prepare discharge summary",
            description="Organize all medical documents and create summary for family",
            priority=TaskPriority.LOW,
            status=TaskStatus.COMPLETED,
            assigned_to="member-3",
            due_date=now - timedelta(days=1),
            completed_at=now,
            created_at=now - timedelta(days=3),
            **common,
        ),
    ]
