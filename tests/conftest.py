"""
Shared pytest fixtures for chat relay tests.

Provides:
- Transcript store with a controllable clock
- Fake provider adapters (no network)
- Router and FastAPI client wired to the fakes
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from chat_relay.api.http_api import create_app
from chat_relay.core.engine import CompletionRouter
from chat_relay.core.errors import ProviderRequestError
from chat_relay.llm.registry import AdapterRegistry
from chat_relay.memory.transcript_store import TranscriptStore


class FakeClock:
    """Deterministic clock advancing one second per call unless told otherwise."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


class FakeAdapter:
    """Adapter returning canned replies and recording every call."""

    def __init__(self, name="alpha", reply="hi there", requires_key=True, error=None):
        self.name = name
        self.reply = reply
        self.requires_key = requires_key
        self.error = error
        self.calls = []

    def send(self, history, credentials, max_reply_length):
        self.calls.append({
            "history": list(history),
            "credentials": credentials,
            "max_reply_length": max_reply_length,
        })
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return TranscriptStore(clock=clock)


@pytest.fixture
def alpha():
    return FakeAdapter("alpha", reply="hi there")


@pytest.fixture
def failing():
    return FakeAdapter(
        "broken",
        error=ProviderRequestError("broken", "status", status=500, detail="Internal Server Error"),
    )


@pytest.fixture
def registry(alpha, failing):
    reg = AdapterRegistry()
    reg.register(alpha)
    reg.register(failing)
    reg.register(FakeAdapter("keyless", reply="free reply", requires_key=False))
    reg.register_client_side("puter")
    return reg


@pytest.fixture
def router(store, registry):
    return CompletionRouter(store, registry, max_reply_tokens=1000, key_loader=lambda name: None)


@pytest.fixture
def client(router):
    return TestClient(create_app(router))
