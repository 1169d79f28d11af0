from __future__ import annotations

import pytest

from agent.core.memory import InMemoryKeyValueStore, SessionStore
from config.settings import get_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "AMIGO_ACCESS_CODE", "AMIGO_RELAY_URL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    get_settings.cache_clear()
    return "test-key"


@pytest.fixture
def kv():
    with InMemoryKeyValueStore() as store:
        yield store


@pytest.fixture
def session_store(kv):
    return SessionStore(kv, namespace="amigo:")
