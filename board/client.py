# =============================================================================
# board/client.py - HTTP Client for the CareSync API
# =============================================================================
# What the dashboard uses to talk to the backend:
# - analyze_document(): multipart upload to POST /api/v1/analyze
# - stream_chat(): POST /api/v1/chat, yielding reply text as it arrives
# - list_tasks() / update_task() / ...: the stored family data endpoints
#
# Server errors come back as BoardClientError carrying the API's `detail`
# and `code`. A chat stream that the server or network cuts short raises
# IncompleteStreamError rather than ending quietly.
#
# Usage:
#   client = CareSyncClient("http://localhost:8000", access_token=token)
#   response = client.analyze_document("discharge.pdf", pdf_bytes, "family-123")
#   for delta in client.stream_chat(messages):
#       print(delta, end="")
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any

import httpx

from core.models.analysis import AnalyzeResponse
from core.models.chat import ChatMessage
from core.models.document import DocumentRecord
from core.models.member import Member, MemberCreate
from core.models.task import Task, TaskUpdate
from lib.utils import ApplicationError, CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=10.0)


class BoardClientError(ApplicationError):
    """An API call failed; `code` and `message` come from the server when it answered."""

    def __init__(
        self,
        message: str,
        code: str = "BOARD_CLIENT_ERROR",
        status_code: int | None = None,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)
        self.status_code = status_code


class IncompleteStreamError(BoardClientError):
    """The chat stream ended before the server finished sending."""

    def __init__(self, received: str, error: str):
        super().__init__(
            "The assistant's reply was cut off",
            code="INCOMPLETE_STREAM",
            suggestion="Send the message again",
            details={"received_chars": len(received), "error": error},
        )
        self.received = received


def _error_from_response(response: httpx.Response) -> BoardClientError:
    """Build a BoardClientError from an error envelope (or whatever came back)."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    detail = body.get("detail") or response.reason_phrase or "Request failed"
    if not isinstance(detail, str):
        # FastAPI request-validation errors carry a list here
        detail = "Invalid request"
    return BoardClientError(
        detail,
        code=body.get("code", f"HTTP_{response.status_code}"),
        status_code=response.status_code,
        suggestion=body.get("suggestion"),
        details=body.get("details"),
    )


class CareSyncClient:
    """
    Thin synchronous client over httpx.

    Pass `transport` to route requests somewhere other than the network
    (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> CareSyncClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Analyze
    # -------------------------------------------------------------------------

    def analyze_document(
        self,
        filename: str,
        content: bytes,
        family_id: str,
        content_type: str = "application/pdf",
    ) -> AnalyzeResponse:
        """
        Upload a document for analysis.

        Raises:
            BoardClientError: Non-2xx response or transport failure
        """
        logger.info(f"Uploading {filename} ({len(content)} bytes) for family {family_id}")
        try:
            response = self._http.post(
                "/api/v1/analyze",
                files={"file": (filename, content, content_type)},
                data={"familyId": family_id},
            )
        except httpx.HTTPError as e:
            raise BoardClientError(f"Could not reach the server: {e}", code="NETWORK_ERROR")

        if response.is_error:
            raise _error_from_response(response)
        return AnalyzeResponse.model_validate(response.json())

    # -------------------------------------------------------------------------
    # Stored Family Data (server must run with PERSIST_RESULTS)
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BoardClientError(f"Could not reach the server: {e}", code="NETWORK_ERROR")
        if response.is_error:
            raise _error_from_response(response)
        return response.json()

    def list_tasks(self, family_id: str) -> list[Task]:
        rows = self._request("GET", f"/api/v1/families/{family_id}/tasks")
        return [Task.model_validate(row) for row in rows]

    def update_task(self, family_id: str, task_id: str, update: TaskUpdate) -> Task:
        """PATCH only the fields set on `update`."""
        row = self._request(
            "PATCH",
            f"/api/v1/families/{family_id}/tasks/{task_id}",
            json=update.model_dump(mode="json", exclude_unset=True),
        )
        return Task.model_validate(row)

    def list_members(self, family_id: str) -> list[Member]:
        rows = self._request("GET", f"/api/v1/families/{family_id}/members")
        return [Member.model_validate(row) for row in rows]

    def add_member(self, family_id: str, member: MemberCreate) -> Member:
        row = self._request(
            "POST",
            f"/api/v1/families/{family_id}/members",
            json=member.model_dump(mode="json"),
        )
        return Member.model_validate(row)

    def list_documents(self, family_id: str) -> list[DocumentRecord]:
        rows = self._request("GET", f"/api/v1/families/{family_id}/documents")
        return [DocumentRecord.model_validate(row) for row in rows]

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    def stream_chat(
        self,
        messages: Sequence[ChatMessage],
        family_context: dict[str, Any] | list[Any] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[str]:
        """
        Yield reply text chunks in arrival order.

        Stops (and closes the connection) as soon as `cancel_token` is
        cancelled.

        Raises:
            BoardClientError: The request was rejected before streaming
            IncompleteStreamError: The stream broke partway through
        """
        payload: dict[str, Any] = {"messages": [m.model_dump(mode="json") for m in messages]}
        if family_context is not None:
            payload["familyContext"] = family_context

        received = ""
        try:
            with self._http.stream("POST", "/api/v1/chat", json=payload) as response:
                if response.is_error:
                    response.read()
                    raise _error_from_response(response)

                for text in response.iter_text():
                    if cancel_token is not None and cancel_token.cancelled:
                        logger.info(f"Chat stream cancelled by caller: {cancel_token.reason}")
                        return
                    if text:
                        received += text
                        yield text
        except (httpx.RemoteProtocolError, httpx.ReadError, httpx.ReadTimeout) as e:
            logger.warning(f"Chat stream ended early after {len(received)} chars: {e}")
            raise IncompleteStreamError(received, str(e))
        except httpx.HTTPError as e:
            raise BoardClientError(f"Could not reach the server: {e}", code="NETWORK_ERROR")
