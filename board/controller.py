# =============================================================================
# board/controller.py - Task Board Controller
# =============================================================================
# The dashboard's behaviour on top of BoardStore and CareSyncClient:
# uploading a document, moving tasks between columns, managing members and
# chatting with the assistant.
#
# Every user-visible failure ends up in state.last_error; nothing fails
# silently. With sync_with_server=True, task and member changes are also
# sent to the stored-data endpoints (the demo family is never synced).
# =============================================================================

from __future__ import annotations

import logging
from pathlib import Path

from board.client import BoardClientError, CareSyncClient, IncompleteStreamError
from board.state import (
    AddDocument,
    AddMember,
    AddTask,
    AppendChatMessage,
    BoardState,
    BoardStore,
    ChatEntry,
    RemoveTask,
    SetChatOpen,
    SetCurrentFamily,
    SetDocuments,
    SetError,
    SetMembers,
    SetTasks,
    SetUploading,
    UpdateChatMessage,
    UpdateTask,
    current_tasks,
)
from core.models.analysis import AnalysisKind, AnalyzeResponse
from core.models.chat import ChatMessage, MessageRole
from core.models.member import Member, MemberCreate
from core.models.task import Task, TaskStatus, TaskUpdate
from core.demo_data import DEMO_FAMILY_ID, demo_board_tasks, demo_members
from lib.utils import ApplicationError, CancellationToken, format_relative_time

logger = logging.getLogger(__name__)

# Fields a status or assignment change touches
_TRACKED_FIELDS = ("status", "assigned_to", "completed_at", "updated_at")


class BoardError(ApplicationError):
    """Raised for board operations on things that aren't on the board."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="BOARD_ERROR", details=details)


def summarize_analysis(response: AnalyzeResponse) -> str:
    """The assistant message posted to the chat after an upload."""
    count = len(response.tasks)
    noun = "task" if count == 1 else "tasks"
    lines = [f"I've analyzed **{response.document.filename}** and created {count} {noun}:"]
    for task in response.tasks:
        due = f" (due {format_relative_time(task.due_date).lower()})" if task.due_date else ""
        lines.append(f"- {task.title} [{task.priority.value}]{due}")

    if response.analysis.summary:
        lines.extend(["", response.analysis.summary])
    if response.kind == AnalysisKind.FALLBACK:
        lines.extend(["", "I couldn't fully read this document, so please review it yourself."])
    elif response.kind == AnalysisKind.DEMO:
        lines.extend(["", "_This is demo data._"])
    return "\n".join(lines)


class TaskBoard:
    """
    Dashboard logic for one family board.

    Example:
        board = TaskBoard(BoardStore(), CareSyncClient("http://localhost:8000"))
        board.load_demo_family()
        board.assign_task("task-1", "member-2")
        board.state.find_task("task-1").status    # TaskStatus.ASSIGNED
    """

    def __init__(
        self,
        store: BoardStore,
        client: CareSyncClient,
        sync_with_server: bool = False,
    ):
        self.store = store
        self.client = client
        self.sync_with_server = sync_with_server

    @property
    def state(self) -> BoardState:
        return self.store.state

    # -------------------------------------------------------------------------
    # Family
    # -------------------------------------------------------------------------

    def load_demo_family(self) -> None:
        """Seed the demo family: three members and one task per column."""
        self.store.dispatch(SetCurrentFamily(DEMO_FAMILY_ID))
        self.store.dispatch(SetMembers(tuple(demo_members())))
        self.store.dispatch(SetTasks(tuple(demo_board_tasks())))
        self.store.dispatch(SetDocuments(()))
        logger.info("Loaded demo family")

    def load_family(self, family_id: str) -> bool:
        """
        Switch to a stored family and fetch its data.

        Returns:
            True on success; on failure last_error is set
        """
        self.store.dispatch(SetCurrentFamily(family_id))
        try:
            members = self.client.list_members(family_id)
            tasks = self.client.list_tasks(family_id)
            documents = self.client.list_documents(family_id)
        except BoardClientError as e:
            return self._fail(f"Could not load family: {e.message}")

        self.store.dispatch(SetMembers(tuple(members)))
        self.store.dispatch(SetTasks(tuple(tasks)))
        self.store.dispatch(SetDocuments(tuple(documents)))
        self.store.dispatch(SetError(None))
        return True

    # -------------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------------

    def upload_document(
        self,
        path: str | Path,
        content_type: str = "application/pdf",
    ) -> AnalyzeResponse | None:
        """
        Upload a document and put its tasks on the board.

        On success the tasks and document are added, a summary is posted to
        the chat and the chat panel opens. On failure last_error is set.
        The uploading flag is always cleared.
        """
        family_id = self.state.current_family
        if not family_id:
            self._fail("Select a family before uploading")
            return None

        path = Path(path)
        self.store.dispatch(SetUploading(True))
        try:
            response = self.client.analyze_document(
                path.name, path.read_bytes(), family_id, content_type=content_type
            )
        except (BoardClientError, OSError) as e:
            message = e.message if isinstance(e, BoardClientError) else str(e)
            self._fail(f"Upload failed: {message}")
            return None
        finally:
            self.store.dispatch(SetUploading(False))

        for task in response.tasks:
            self.store.dispatch(AddTask(task))
        self.store.dispatch(AddDocument(response.document))
        self.store.dispatch(AppendChatMessage(
            ChatEntry(role=MessageRole.ASSISTANT, content=summarize_analysis(response))
        ))
        self.store.dispatch(SetChatOpen(True))
        self.store.dispatch(SetError(None))

        logger.info(f"Added {len(response.tasks)} tasks from {path.name} ({response.kind.value})")
        return response

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def assign_task(self, task_id: str, member_id: str | None) -> Task:
        """
        Assign a task to a member, or unassign it with None.

        Status becomes `assigned` with a member and `pending` without one,
        whatever it was before.
        """
        if member_id is not None and self.state.find_member(member_id) is None:
            raise BoardError(f"Member not found: {member_id}", details={"member_id": member_id})
        task = self._require_task(task_id)
        return self._apply(task, task.with_assignee(member_id), TaskUpdate(assigned_to=member_id))

    def set_task_status(self, task_id: str, status: TaskStatus | str) -> Task:
        """Move a task to any status; completed_at follows completion."""
        task = self._require_task(task_id)
        status = TaskStatus(status)
        return self._apply(task, task.with_status(status), TaskUpdate(status=status))

    def start_task(self, task_id: str) -> Task:
        return self.set_task_status(task_id, TaskStatus.IN_PROGRESS)

    def complete_task(self, task_id: str) -> Task:
        return self.set_task_status(task_id, TaskStatus.COMPLETED)

    def remove_task(self, task_id: str) -> None:
        """Drop a task from the board (never deleted server-side)."""
        self._require_task(task_id)
        self.store.dispatch(RemoveTask(task_id))

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def add_member(self, data: MemberCreate) -> Member | None:
        family_id = self.state.current_family
        if not family_id:
            self._fail("Select a family before adding members")
            return None

        if self._syncing():
            try:
                member = self.client.add_member(family_id, data)
            except BoardClientError as e:
                self._fail(f"Could not add member: {e.message}")
                return None
        else:
            member = data.to_member(family_id)

        self.store.dispatch(AddMember(member))
        return member

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    def family_context(self) -> dict:
        """The slice of board state sent along with chat messages."""
        names = {m.id: m.name for m in self.state.members}
        return {
            "familyId": self.state.current_family,
            "members": [m.name for m in self.state.members],
            "tasks": [
                {
                    "title": t.title,
                    "status": t.status.value,
                    "priority": t.priority.value,
                    "assigned_to": names.get(t.assigned_to) if t.assigned_to else None,
                    "due_date": t.due_date.date().isoformat() if t.due_date else None,
                }
                for t in current_tasks(self.state)
            ],
        }

    def send_chat_message(
        self,
        text: str,
        cancel_token: CancellationToken | None = None,
    ) -> ChatEntry:
        """
        Send a message and stream the reply into the chat.

        Returns:
            The assistant's ChatEntry. `complete` is False if the reply was
            cut off or the request failed (last_error says why).
        """
        history = [
            ChatMessage(role=m.role, content=m.content)
            for m in self.state.chat_messages
            if m.complete and m.content
        ]
        user_entry = ChatEntry(role=MessageRole.USER, content=text)
        reply = ChatEntry(role=MessageRole.ASSISTANT, content="", complete=False)
        self.store.dispatch(AppendChatMessage(user_entry))
        self.store.dispatch(AppendChatMessage(reply))

        messages = [*history, ChatMessage(role=MessageRole.USER, content=text)]
        content = ""
        try:
            for delta in self.client.stream_chat(messages, self.family_context(), cancel_token):
                content += delta
                self.store.dispatch(UpdateChatMessage(reply.id, content))
        except IncompleteStreamError as e:
            self.store.dispatch(UpdateChatMessage(reply.id, content, complete=False))
            self._fail(e.message)
            return self._chat_entry(reply.id)
        except BoardClientError as e:
            self.store.dispatch(UpdateChatMessage(reply.id, content, complete=False))
            self._fail(f"Chat failed: {e.message}")
            return self._chat_entry(reply.id)

        cancelled = cancel_token is not None and cancel_token.cancelled
        self.store.dispatch(UpdateChatMessage(reply.id, content, complete=not cancelled))
        return self._chat_entry(reply.id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _syncing(self) -> bool:
        return self.sync_with_server and self.state.current_family != DEMO_FAMILY_ID

    def _require_task(self, task_id: str) -> Task:
        task = self.state.find_task(task_id)
        if task is None:
            raise BoardError(f"Task not found: {task_id}", details={"task_id": task_id})
        return task

    def _apply(self, before: Task, after: Task, update: TaskUpdate) -> Task:
        """Write a task change to the board, then to the server when syncing."""
        self.store.dispatch(UpdateTask(
            before.id, {name: getattr(after, name) for name in _TRACKED_FIELDS}
        ))

        if self._syncing():
            try:
                stored = self.client.update_task(before.family_id, before.id, update)
            except BoardClientError as e:
                # Put the board back the way the server still has it
                self.store.dispatch(UpdateTask(
                    before.id, {name: getattr(before, name) for name in _TRACKED_FIELDS}
                ))
                self._fail(f"Could not save task: {e.message}")
                return before
            self.store.dispatch(UpdateTask(stored.id, stored.model_dump()))
            return stored

        return after

    def _chat_entry(self, entry_id: str) -> ChatEntry:
        return next(m for m in self.state.chat_messages if m.id == entry_id)

    def _fail(self, message: str) -> bool:
        logger.error(message)
        self.store.dispatch(SetError(message))
        return False
