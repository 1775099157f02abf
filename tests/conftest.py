from __future__ import annotations

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from leadzap.api.app import create_app
from leadzap.application.orchestrator import SessionOrchestrator, build_orchestrator
from leadzap.config.settings import Settings, get_settings
from leadzap.domain.paths import TenantPaths
from leadzap.infra.chat_client_memory import InMemoryChatClientFactory
from tests.helpers.sessions import FlakyDocumentStore, SteppingClock

KNOWN_CONTACTS = {"5511900000001": "Maria Souza", "5511900000002": "João Lima"}


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        contact_lookup_timeout_seconds=0.2,
        session_stop_timeout_seconds=1.0,
        event_queue_maxsize=64,
    )


@pytest.fixture()
def store() -> FlakyDocumentStore:
    return FlakyDocumentStore()


@pytest.fixture()
def client_factory() -> InMemoryChatClientFactory:
    return InMemoryChatClientFactory(contact_names=KNOWN_CONTACTS)


@pytest.fixture()
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture()
def paths() -> TenantPaths:
    return TenantPaths()


@pytest_asyncio.fixture()
async def orchestrator(settings, store, client_factory):
    orch: SessionOrchestrator = build_orchestrator(settings, store, client_factory)
    yield orch
    await orch.shutdown()


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch, store, client_factory):
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("EVOLUTION_WEBHOOK_TOKEN", raising=False)
    get_settings.cache_clear()
    app = create_app(document_store=store, client_factory=client_factory)
    with TestClient(app) as test_client:
        yield test_client
    get_settings.cache_clear()
