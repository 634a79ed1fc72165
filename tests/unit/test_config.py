"""Unit tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from readerlite.config import DEFAULT_USER_AGENT, Settings, get_settings
from readerlite.offline.engine import OfflineCacheTransport
from readerlite.reader.client import ReaderClient


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.user_agent == DEFAULT_USER_AGENT
        assert settings.fetch_timeout is None
        assert settings.proxy_path == "/api/fetch"
        assert settings.cache_name == "reader-lite"
        assert settings.cache_version == "v1"
        assert settings.shell_assets == ["/", "/manifest.webmanifest"]

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("READERLITE_CACHE_VERSION", " v7 ")
        monkeypatch.setenv("READERLITE_FETCH_TIMEOUT", "12.5")
        monkeypatch.setenv("READERLITE_SHELL_ASSETS", '["/", "/app.css"]')

        settings = Settings()

        assert settings.cache_version == "v7"
        assert settings.fetch_timeout == 12.5
        assert settings.shell_assets == ["/", "/app.css"]

    def test_rejects_non_positive_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("READERLITE_FETCH_TIMEOUT", "0")

        with pytest.raises(ValidationError, match="must be positive"):
            Settings()

    def test_rejects_blank_user_agent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("READERLITE_USER_AGENT", "   ")

        with pytest.raises(ValidationError, match="must not be blank"):
            Settings()

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_data_path_expands_home(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        assert Settings().data_path == tmp_path / ".reader-lite"


class TestReaderFromSettings:
    """Tests for wiring the reader client from settings."""

    async def test_uses_offline_transport(self, tmp_path: Path) -> None:
        settings = Settings(data_dir=tmp_path, cache_version="v3")

        reader = ReaderClient.from_settings(settings)

        assert isinstance(reader._offline, OfflineCacheTransport)
        assert reader._offline.cache_name == "reader-lite-v3"
        assert reader.feed_urls == []
        await reader.close()
