#!/usr/bin/env python3
# =============================================================================
# scripts/board_cli.py - Terminal Task Board
# =============================================================================
# Drives the task board against a running CareSync API: upload documents,
# move tasks around and chat with the assistant.
#
# Usage:
#   python scripts/board_cli.py                       # Demo family
#   python scripts/board_cli.py --family <family_id>  # Stored family (needs a token)
#
# Environment:
#   CARESYNC_API_URL       - API base URL (default http://localhost:8000)
#   CARESYNC_ACCESS_TOKEN  - Supabase access token for stored families
#
# Commands:
#   /tasks                  - Show the board columns
#   /members                - List family members
#   /upload <path.pdf>      - Analyze a document and add its tasks
#   /assign <task> <member> - Assign a task (use "-" to unassign)
#   /start <task>           - Mark a task in progress
#   /done <task>            - Mark a task completed
#   /remove <task>          - Remove a task from the board
#   /quit or /exit          - Exit
#   anything else           - Send to the assistant
# =============================================================================

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from board import BoardError, BoardStore, CareSyncClient, TaskBoard, board_columns
from lib.utils import CancellationToken, format_relative_time


def print_board(board: TaskBoard) -> None:
    names = {m.id: m.name for m in board.state.members}
    for column, tasks in board_columns(board.state).items():
        print(f"\n== {column.upper()} ({len(tasks)}) ==")
        for task in tasks:
            who = f" -> {names.get(task.assigned_to, task.assigned_to)}" if task.assigned_to else ""
            due = f", due {format_relative_time(task.due_date)}" if task.due_date else ""
            print(f"  [{task.id}] {task.title} ({task.priority.value}{due}){who}")


def print_members(board: TaskBoard) -> None:
    for member in board.state.members:
        print(f"  [{member.id}] {member.name} ({member.role.value})")


def chat(board: TaskBoard, text: str) -> None:
    token = CancellationToken()
    printed = 0

    def on_change(state) -> None:
        nonlocal printed
        reply = state.chat_messages[-1]
        print(reply.content[printed:], end="", flush=True)
        printed = len(reply.content)

    unsubscribe = board.store.subscribe(on_change)
    try:
        entry = board.send_chat_message(text, token)
    except KeyboardInterrupt:
        token.cancel("interrupted")
        entry = None
    finally:
        unsubscribe()
    print()
    if entry is not None and not entry.complete and board.state.last_error:
        print(f"! {board.state.last_error}")


def handle_command(board: TaskBoard, line: str) -> bool:
    """Run one command; returns False to exit."""
    parts = line.split()
    command, args = parts[0].lower(), parts[1:]

    if command in ("/quit", "/exit"):
        return False
    if command == "/tasks":
        print_board(board)
    elif command == "/members":
        print_members(board)
    elif command == "/upload" and args:
        response = board.upload_document(" ".join(args))
        if response is None:
            print(f"! {board.state.last_error}")
        else:
            print(board.state.chat_messages[-1].content)
    elif command == "/assign" and len(args) == 2:
        board.assign_task(args[0], None if args[1] == "-" else args[1])
        print_board(board)
    elif command == "/start" and args:
        board.start_task(args[0])
        print_board(board)
    elif command == "/done" and args:
        board.complete_task(args[0])
        print_board(board)
    elif command == "/remove" and args:
        board.remove_task(args[0])
        print_board(board)
    else:
        print("Unknown command. See the header of this script for usage.")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Terminal task board for CareSync")
    parser.add_argument("--family", help="Load a stored family instead of the demo family")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    client = CareSyncClient(
        os.getenv("CARESYNC_API_URL", "http://localhost:8000"),
        access_token=os.getenv("CARESYNC_ACCESS_TOKEN"),
    )
    board = TaskBoard(BoardStore(), client, sync_with_server=bool(args.family))

    if args.family:
        if not board.load_family(args.family):
            print(f"ERROR: {board.state.last_error}")
            sys.exit(1)
    else:
        board.load_demo_family()

    print("CareSync board. Type /tasks to see the board, /quit to exit.")
    print_board(board)

    with client:
        while True:
            try:
                line = input("\n> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not line:
                continue
            if not line.startswith("/"):
                chat(board, line)
                continue
            try:
                if not handle_command(board, line):
                    break
            except (BoardError, ValueError) as e:
                print(f"! {e}")


if __name__ == "__main__":
    main()
