# =============================================================================
# tests/test_config.py - Settings Tests
# =============================================================================
# Settings validation: required keys, mode combinations, derived values.
# Built with _env_file=None so a developer's .env never leaks in.
# =============================================================================

import pytest
from pydantic import ValidationError

from app.config import Settings


def build(**values) -> Settings:
    values.setdefault("OPENAI_API_KEY", "test-openai-key")
    return Settings(_env_file=None, **values)


class TestRequiredSettings:

    def test_missing_openai_key_is_fatal(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValidationError, match="OPENAI_API_KEY"):
            Settings(_env_file=None)

    def test_demo_mode_does_not_excuse_missing_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValidationError):
            Settings(_env_file=None, DEMO_MODE=True)


class TestModeFlags:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DEMO_MODE", raising=False)
        monkeypatch.delenv("PERSIST_RESULTS", raising=False)

        settings = build()

        assert settings.DEMO_MODE is False
        assert settings.PERSIST_RESULTS is False
        assert settings.ANALYSIS_MAX_CHARS == 30_000
        assert settings.STORAGE_BUCKET == "documents"

    def test_demo_and_persist_are_exclusive(self):
        with pytest.raises(ValidationError, match="cannot both be enabled"):
            build(DEMO_MODE=True, PERSIST_RESULTS=True)

    def test_persist_requires_supabase(self, monkeypatch):
        for name in ("SUPABASE_URL", "SUPABASE_SERVICE_KEY", "SUPABASE_JWT_SECRET"):
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(ValidationError, match="SUPABASE_URL"):
            build(PERSIST_RESULTS=True)

    def test_persist_with_supabase(self):
        settings = build(
            PERSIST_RESULTS=True,
            SUPABASE_URL="https://x.supabase.co",
            SUPABASE_SERVICE_KEY="service",
            SUPABASE_JWT_SECRET="secret",
        )
        assert settings.PERSIST_RESULTS is True


class TestDerivedValues:

    def test_chat_model_falls_back_to_analysis_model(self, monkeypatch):
        monkeypatch.delenv("CHAT_MODEL", raising=False)
        assert build(OPENAI_MODEL="gpt-4o").chat_model == "gpt-4o"
        assert build(OPENAI_MODEL="gpt-4o", CHAT_MODEL="llama-3.3-70b-versatile").chat_model == "llama-3.3-70b-versatile"

    def test_cors_origins_list(self):
        settings = build(CORS_ORIGINS="http://localhost:3000, https://caresync.app")
        assert settings.cors_origins_list == ["http://localhost:3000", "https://caresync.app"]

    def test_max_upload_size_bytes(self):
        assert build(MAX_UPLOAD_SIZE_MB=2).max_upload_size_bytes == 2 * 1024 * 1024
