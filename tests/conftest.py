# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Fake OpenAI responses and streams (no network, no API costs)
# - An httpx AsyncClient bound to the FastAPI app
# =============================================================================

import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DEMO_MODE", "false")
os.environ.setdefault("PERSIST_RESULTS", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

from app.config import Settings

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture
def make_settings():
    """Build a Settings object with overrides, independent of the global one."""
    def _make(**overrides) -> Settings:
        values = {"OPENAI_API_KEY": "test-openai-key", "DEMO_MODE": False, "PERSIST_RESULTS": False}
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest.fixture
def test_settings(make_settings):
    return make_settings()


# =============================================================================
# OpenAI Fakes
# =============================================================================

def make_completion(content):
    """A chat.completions response with a single message."""
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_chunk(content):
    """A streaming chunk carrying one delta."""
    delta = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


class FakeStream:
    """
    Stands in for openai's AsyncStream.

    Yields the given chunks, optionally raising `error` after them, and
    records whether close() was awaited.
    """

    def __init__(self, chunks, error: Exception | None = None):
        self._chunks = list(chunks)
        self._error = error
        self.closed = False
        self.consumed = 0

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            self.consumed += 1
            yield chunk
        if self._error is not None:
            raise self._error

    async def close(self):
        self.closed = True


def fake_stream(deltas, error: Exception | None = None) -> FakeStream:
    return FakeStream([make_chunk(d) for d in deltas], error=error)


@pytest.fixture
def mock_openai_client():
    """Sync OpenAI client mock; set `.chat.completions.create.return_value`."""
    return MagicMock()


@pytest.fixture
def mock_async_openai_client():
    """AsyncOpenAI client mock whose create() is awaitable."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


# =============================================================================
# Sample Data
# =============================================================================

@pytest.fixture
def sample_analysis_dict():
    """A well-formed model answer with three tasks, one without a due date."""
    return {
        "document_type": "discharge_summary",
        "patient_info": {"name": "John Doe", "conditions": ["Hypertension"]},
        "tasks": [
            {
                "title": "Schedule cardiology follow-up",
                "description": "Follow up with Dr. Smith in two weeks",
                "priority": "high",
                "due_date": "2024-03-15",
                "category": "appointment",
            },
            {
                "title": "Pick up Lisinopril",
                "description": "Prescription sent to CVS",
                "priority": "MEDIUM",
                "due_date": "2024-03-03",
                "category": "medication",
            },
            {
                "title": "Log blood pressure daily",
                "description": None,
                "priority": "urgent",
                "due_date": None,
                "category": "monitoring",
            },
        ],
        "key_information": ["Lisinopril started at 10mg"],
        "summary": "Discharged after hypertensive episode.",
    }


@pytest.fixture
def pdf_bytes():
    """Bytes that pass upload validation; text extraction is patched in tests."""
    return b"%PDF-1.4\n% fake test document\n"


# =============================================================================
# Auth
# =============================================================================

def make_token(user_id: str = "user-123", email: str = "sarah@example.com", expires_in: int = 3600) -> str:
    """An HS256 Supabase-style access token signed with the test secret."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


# =============================================================================
# HTTP Client
# =============================================================================

@pytest_asyncio.fixture()
async def api_client():
    """httpx AsyncClient bound to the FastAPI app; overrides are cleared after."""
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
