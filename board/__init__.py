# =============================================================================
# board/ - Client-Side Task Board
# =============================================================================
# The dashboard's state and glue, usable from any Python frontend:
# - state.py: Immutable BoardState, actions, reducer, store and selectors
# - client.py: httpx client for the CareSync API
# - controller.py: TaskBoard (upload, assignment, chat)
#
# Importing this package never loads server settings, so it works without
# OPENAI_API_KEY.
# =============================================================================

from board.client import BoardClientError, CareSyncClient, IncompleteStreamError
from board.controller import BoardError, TaskBoard, summarize_analysis
from board.state import (
    BoardState,
    BoardStore,
    ChatEntry,
    board_columns,
    current_tasks,
    reduce,
    tasks_by_member,
    tasks_by_status,
)

__all__ = [
    "BoardClientError",
    "CareSyncClient",
    "IncompleteStreamError",
    "BoardError",
    "TaskBoard",
    "summarize_analysis",
    "BoardState",
    "BoardStore",
    "ChatEntry",
    "board_columns",
    "current_tasks",
    "reduce",
    "tasks_by_member",
    "tasks_by_status",
]
