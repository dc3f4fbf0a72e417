"""
Tests for the session transcript store.
"""

import threading
from datetime import timedelta

import pytest

from chat_relay.core.errors import ValidationError
from chat_relay.core.models import Role
from chat_relay.memory.transcript_store import InMemoryTranscriptBackend, TranscriptStore

from conftest import FakeClock


class TestAppend:
    """append() creates immutable messages with fresh ids."""

    def test_append_returns_stored_message(self, store):
        msg = store.append("s1", "user", "hello")
        assert msg.session_id == "s1"
        assert msg.role is Role.USER
        assert msg.content == "hello"
        assert msg.provider is None

    def test_append_sets_provider_for_assistant(self, store):
        msg = store.append("s1", Role.ASSISTANT, "reply", provider="openai")
        assert msg.provider == "openai"

    def test_ids_are_unique(self, store):
        ids = {store.append(f"s{i % 3}", "user", "x").id for i in range(50)}
        assert len(ids) == 50

    def test_appended_message_is_last(self, store):
        store.append("s1", "user", "first")
        msg = store.append("s1", "assistant", "second", provider="alpha")
        assert store.read("s1")[-1] == msg

    def test_message_is_frozen(self, store):
        msg = store.append("s1", "user", "hello")
        with pytest.raises(AttributeError):
            msg.content = "changed"

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    def test_blank_content_rejected(self, store, content):
        with pytest.raises(ValidationError):
            store.append("s1", "user", content)
        assert store.read("s1") == []

    def test_unknown_role_rejected(self, store):
        with pytest.raises(ValidationError):
            store.append("s1", "system", "hello")

    def test_blank_session_rejected(self, store):
        with pytest.raises(ValidationError):
            store.append("  ", "user", "hello")


class TestRead:
    """read() returns the transcript in creation order."""

    def test_unknown_session_is_empty(self, store):
        assert store.read("nope") == []

    def test_order_matches_creation(self, store):
        for text in ("a", "b", "c"):
            store.append("s1", "user", text)
        assert [m.content for m in store.read("s1")] == ["a", "b", "c"]

    def test_sessions_are_partitioned(self, store):
        store.append("s1", "user", "one")
        store.append("s2", "user", "two")
        assert [m.content for m in store.read("s1")] == ["one"]
        assert [m.content for m in store.read("s2")] == ["two"]

    def test_read_returns_copy(self, store):
        store.append("s1", "user", "one")
        snapshot = store.read("s1")
        snapshot.clear()
        assert len(store.read("s1")) == 1

    def test_timestamps_never_decrease_when_clock_goes_back(self):
        clock = FakeClock(step=timedelta(seconds=-5))
        store = TranscriptStore(clock=clock)
        for text in ("a", "b", "c"):
            store.append("s1", "user", text)
        stamps = [m.timestamp for m in store.read("s1")]
        assert stamps == sorted(stamps)


class TestClear:
    """clear() empties one session and is idempotent."""

    def test_clear_then_read_is_empty(self, store):
        store.append("s1", "user", "hello")
        store.append("s1", "assistant", "hi", provider="alpha")
        store.clear("s1")
        assert store.read("s1") == []

    def test_clear_unknown_session_is_silent(self, store):
        store.clear("never-seen")
        store.clear("never-seen")
        assert store.read("never-seen") == []

    def test_clear_leaves_other_sessions(self, store):
        store.append("s1", "user", "hello")
        store.append("s2", "user", "keep me")
        store.clear("s1")
        assert [m.content for m in store.read("s2")] == ["keep me"]


class TestBackendInjection:
    """The store delegates to the injected backend."""

    def test_shared_backend_is_visible_across_stores(self):
        backend = InMemoryTranscriptBackend()
        TranscriptStore(backend).append("s1", "user", "hello")
        assert [m.content for m in TranscriptStore(backend).read("s1")] == ["hello"]


class TestConcurrency:
    """Concurrent appends on different sessions do not interfere."""

    def test_parallel_sessions(self):
        store = TranscriptStore()

        def worker(session_id):
            for i in range(100):
                store.append(session_id, "user", f"{session_id}-{i}")

        threads = [threading.Thread(target=worker, args=(f"s{n}",)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for n in range(5):
            contents = [m.content for m in store.read(f"s{n}")]
            assert contents == [f"s{n}-{i}" for i in range(100)]


class TestAppendCost:
    """append() reads only the latest message, never the whole session."""

    def test_append_does_not_fetch_history(self):
        class CountingBackend(InMemoryTranscriptBackend):
            fetches = 0

            def fetch(self, session_id):
                CountingBackend.fetches += 1
                return super().fetch(session_id)

        backend = CountingBackend()
        store = TranscriptStore(backend)
        for i in range(20):
            store.append("s1", "user", f"m{i}")
        assert CountingBackend.fetches == 0
        assert backend.last("s1").content == "m19"

    def test_last_of_unknown_session(self):
        assert InMemoryTranscriptBackend().last("nope") is None
