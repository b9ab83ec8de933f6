"""Tests for settings and service construction."""

import logging

import pytest
from fastapi.testclient import TestClient

from aurora.clients.composio import ComposioClient, DisabledToolBackend
from aurora.clients.openai_compatible import OpenAICompatibleClient
from aurora.config import CHAT_CANDIDATES, Settings
from aurora.main import create_app
from aurora.services.container import build_services
from aurora.services.session_manager import InMemorySessionManager
from aurora.utils.logging import LogConfig, get_logger, setup_logging


class TestSettings:
    """Tests for environment-derived settings."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "groq-key")
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        monkeypatch.setenv("COMPOSIO_API_KEY", "composio-key")
        monkeypatch.setenv("APPWRITE_ENDPOINT", "https://appwrite.test/v1")
        monkeypatch.setenv("APPWRITE_PROJECT_ID", "project-1")

        settings = Settings.from_env()

        assert settings.provider_keys == {"groq": "groq-key"}
        assert settings.composio_api_key == "composio-key"
        assert settings.appwrite_endpoint == "https://appwrite.test/v1"
        assert settings.appwrite_project_id == "project-1"

    def test_empty_values_are_unset(self, monkeypatch):
        monkeypatch.setenv("COMPOSIO_API_KEY", "")
        monkeypatch.setenv("APPWRITE_ENDPOINT", "")

        settings = Settings.from_env()

        assert settings.composio_api_key is None
        assert settings.appwrite_endpoint is None

    def test_dev_token_from_env(self, monkeypatch):
        monkeypatch.setenv("AURORA_DEV_TOKEN", "dev-token")
        monkeypatch.delenv("AURORA_DEV_USER_ID", raising=False)

        settings = Settings.from_env()

        assert settings.dev_token == "dev-token"
        assert settings.dev_user_id == "dev-user"


class TestDefaultWiring:
    """Tests for running with only environment defaults."""

    def test_dev_token_authenticates(self):
        """Test that without Appwrite the dev token reaches authenticated routes."""
        services = build_services(Settings(dev_token="dev-token", dev_user_id="dev-1"))
        headers = {"Authorization": "Bearer dev-token"}

        with TestClient(create_app(services)) as client:
            saved = client.post(
                "/chats/exchange",
                json={"userContent": "Plan a trip to Lisbon", "assistantContent": "Sure."},
                headers=headers,
            )
            listed = client.get("/chats", headers=headers)
            rejected = client.get("/chats", headers={"Authorization": "Bearer other-token"})

        assert saved.status_code == 200
        assert saved.json()["title"] == "Plan a trip to Lisbon"
        assert [chat["id"] for chat in listed.json()] == [saved.json()["chatId"]]
        assert rejected.status_code == 401
        assert services.chat_store.list_chats("dev-1")

    @pytest.mark.asyncio
    async def test_without_dev_token_nobody_is_accepted(self):
        services = build_services(Settings())

        assert await services.sessions.resolve("dev-token") is None

        await services.aclose()


class TestBuildServices:
    """Tests for wiring services from settings."""

    @pytest.mark.asyncio
    async def test_minimal_settings(self):
        """Test that missing credentials disable providers and tools instead of failing."""
        services = build_services(Settings())

        assert services.llm.backends == {}
        assert services.llm.candidates == []
        assert isinstance(services.resolver.backend, DisabledToolBackend)
        assert isinstance(services.sessions, InMemorySessionManager)
        assert await services.resolver.resolve_available_toolkits("user-1")

        await services.aclose()

    @pytest.mark.asyncio
    async def test_configured_providers(self):
        services = build_services(Settings(provider_keys={"groq": "groq-key"}, composio_api_key="composio-key"))

        assert isinstance(services.llm.backends["groq"], OpenAICompatibleClient)
        assert all(candidate.provider == "groq" for candidate in services.llm.candidates)
        assert len(services.llm.candidates) == len([c for c in CHAT_CANDIDATES if c.provider == "groq"])
        assert isinstance(services.resolver.backend, ComposioClient)

        await services.aclose()


class TestLogging:
    """Tests for logging setup."""

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert LogConfig.from_env().level == "debug"
        assert get_logger("aurora.test").level == logging.DEBUG

    def test_quiet_loggers(self):
        setup_logging(LogConfig(level="DEBUG", quiet_loggers=["aurora.noisy"]))

        assert logging.getLogger("aurora.noisy").level == logging.WARNING
        assert logging.getLogger().level == logging.DEBUG
