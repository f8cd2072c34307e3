# =============================================================================
# board/state.py - Task Board State, Actions and Reducer
# =============================================================================
# The dashboard's client-side state as an immutable snapshot:
#
#   new_state = reduce(state, action)
#
# Each action is a small frozen dataclass. Reducers are registered per action
# type with @handles, so adding an action means adding one class and one
# function. BoardStore wraps the current snapshot and notifies subscribers.
#
# Example:
#   store = BoardStore()
#   store.dispatch(SetCurrentFamily("family-123"))
#   store.dispatch(AddTask(task))
#   board_columns(store.state)["pending"]
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from core.models.chat import MessageRole
from core.models.document import DocumentRecord
from core.models.member import Member
from core.models.task import Task, TaskStatus
from lib.utils import new_id, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# State
# =============================================================================

@dataclass(frozen=True)
class ChatEntry:
    """
    One message in the chat panel.

    `complete` is False while an assistant reply is still streaming, and stays
    False if the stream was cut off.
    """
    role: MessageRole
    content: str
    complete: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class BoardState:
    """Snapshot of everything the dashboard shows."""
    current_family: str | None = None
    tasks: tuple[Task, ...] = ()
    members: tuple[Member, ...] = ()
    documents: tuple[DocumentRecord, ...] = ()
    chat_messages: tuple[ChatEntry, ...] = ()
    is_chat_open: bool = False
    is_uploading: bool = False
    selected_task_id: str | None = None
    last_error: str | None = None

    def find_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_member(self, member_id: str) -> Member | None:
        return next((m for m in self.members if m.id == member_id), None)


# =============================================================================
# Actions
# =============================================================================

@dataclass(frozen=True)
class SetCurrentFamily:
    family_id: str | None


@dataclass(frozen=True)
class SetTasks:
    tasks: tuple[Task, ...]


@dataclass(frozen=True)
class AddTask:
    task: Task


@dataclass(frozen=True)
class UpdateTask:
    """Merge `updates` into the task with `task_id` (no-op if absent)."""
    task_id: str
    updates: Mapping[str, Any]


@dataclass(frozen=True)
class RemoveTask:
    task_id: str


@dataclass(frozen=True)
class SetMembers:
    members: tuple[Member, ...]


@dataclass(frozen=True)
class AddMember:
    member: Member


@dataclass(frozen=True)
class SetDocuments:
    documents: tuple[DocumentRecord, ...]


@dataclass(frozen=True)
class AddDocument:
    document: DocumentRecord


@dataclass(frozen=True)
class SetChatOpen:
    is_open: bool


@dataclass(frozen=True)
class SetUploading:
    is_uploading: bool


@dataclass(frozen=True)
class SelectTask:
    task_id: str | None


@dataclass(frozen=True)
class AppendChatMessage:
    message: ChatEntry


@dataclass(frozen=True)
class UpdateChatMessage:
    """Replace the content (and optionally completeness) of a chat message."""
    message_id: str
    content: str
    complete: bool | None = None


@dataclass(frozen=True)
class SetError:
    error: str | None


# =============================================================================
# Reducer Registry
# =============================================================================

Reducer = Callable[[BoardState, Any], BoardState]

REDUCERS: dict[type, Reducer] = {}


def handles(action_type: type):
    """
    Decorator to register the reducer for an action type.

    Usage:
        @handles(AddTask)
        def _add_task(state, action):
            return replace(state, tasks=(*state.tasks, action.task))
    """
    def decorator(func: Reducer) -> Reducer:
        REDUCERS[action_type] = func
        return func
    return decorator


def reduce(state: BoardState, action: Any) -> BoardState:
    """
    Apply one action and return the new state.

    Raises:
        TypeError: If no reducer is registered for the action's type
    """
    reducer = REDUCERS.get(type(action))
    if reducer is None:
        raise TypeError(f"Unknown board action: {type(action).__name__}")
    return reducer(state, action)


@handles(SetCurrentFamily)
def _set_current_family(state: BoardState, action: SetCurrentFamily) -> BoardState:
    return replace(state, current_family=action.family_id)


@handles(SetTasks)
def _set_tasks(state: BoardState, action: SetTasks) -> BoardState:
    return replace(state, tasks=tuple(action.tasks))


@handles(AddTask)
def _add_task(state: BoardState, action: AddTask) -> BoardState:
    return replace(state, tasks=(*state.tasks, action.task))


@handles(UpdateTask)
def _update_task(state: BoardState, action: UpdateTask) -> BoardState:
    tasks = tuple(
        task.model_copy(update=dict(action.updates)) if task.id == action.task_id else task
        for task in state.tasks
    )
    return replace(state, tasks=tasks)


@handles(RemoveTask)
def _remove_task(state: BoardState, action: RemoveTask) -> BoardState:
    selected = None if state.selected_task_id == action.task_id else state.selected_task_id
    return replace(
        state,
        tasks=tuple(t for t in state.tasks if t.id != action.task_id),
        selected_task_id=selected,
    )


@handles(SetMembers)
def _set_members(state: BoardState, action: SetMembers) -> BoardState:
    return replace(state, members=tuple(action.members))


@handles(AddMember)
def _add_member(state: BoardState, action: AddMember) -> BoardState:
    return replace(state, members=(*state.members, action.member))


@handles(SetDocuments)
def _set_documents(state: BoardState, action: SetDocuments) -> BoardState:
    return replace(state, documents=tuple(action.documents))


@handles(AddDocument)
def _add_document(state: BoardState, action: AddDocument) -> BoardState:
    return replace(state, documents=(*state.documents, action.document))


@handles(SetChatOpen)
def _set_chat_open(state: BoardState, action: SetChatOpen) -> BoardState:
    return replace(state, is_chat_open=action.is_open)


@handles(SetUploading)
def _set_uploading(state: BoardState, action: SetUploading) -> BoardState:
    return replace(state, is_uploading=action.is_uploading)


@handles(SelectTask)
def _select_task(state: BoardState, action: SelectTask) -> BoardState:
    return replace(state, selected_task_id=action.task_id)


@handles(AppendChatMessage)
def _append_chat_message(state: BoardState, action: AppendChatMessage) -> BoardState:
    return replace(state, chat_messages=(*state.chat_messages, action.message))


@handles(UpdateChatMessage)
def _update_chat_message(state: BoardState, action: UpdateChatMessage) -> BoardState:
    def updated(entry: ChatEntry) -> ChatEntry:
        if entry.id != action.message_id:
            return entry
        complete = entry.complete if action.complete is None else action.complete
        return replace(entry, content=action.content, complete=complete)

    return replace(state, chat_messages=tuple(updated(m) for m in state.chat_messages))


@handles(SetError)
def _set_error(state: BoardState, action: SetError) -> BoardState:
    return replace(state, last_error=action.error)


# =============================================================================
# Store
# =============================================================================

Listener = Callable[[BoardState], None]


class BoardStore:
    """
    Holds the current BoardState and notifies subscribers on change.

    Not thread-safe; one store per board, passed to whoever needs it.
    """

    def __init__(self, initial: BoardState | None = None):
        self._state = initial or BoardState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> BoardState:
        return self._state

    def dispatch(self, action: Any) -> BoardState:
        """Reduce `action` into the state; listeners run only if it changed."""
        new_state = reduce(self._state, action)
        logger.debug(f"Dispatched {type(action).__name__}")
        if new_state != self._state:
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


# =============================================================================
# Selectors
# =============================================================================

def current_tasks(state: BoardState) -> list[Task]:
    """Tasks belonging to the current family."""
    return [t for t in state.tasks if t.family_id == state.current_family]


def tasks_by_status(state: BoardState, status: TaskStatus | str) -> list[Task]:
    status = TaskStatus(status)
    return [t for t in current_tasks(state) if t.status == status]


def tasks_by_member(state: BoardState, member_id: str) -> list[Task]:
    return [t for t in current_tasks(state) if t.assigned_to == member_id]


def board_columns(state: BoardState) -> dict[str, list[Task]]:
    """
    The dashboard's three columns.

    "active" holds both assigned and in-progress tasks.
    """
    tasks = current_tasks(state)
    return {
        "pending": [t for t in tasks if t.status == TaskStatus.PENDING],
        "active": [t for t in tasks if t.status in (TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS)],
        "completed": [t for t in tasks if t.status == TaskStatus.COMPLETED],
    }
