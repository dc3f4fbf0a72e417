"""Completion routing between the transcript store and provider adapters.

Architectural role:
    Turns one chat turn into one provider request and back, keeping the
    `TranscriptStore` as the single source of truth for history. API and CLI
    layers call into `CompletionRouter`; nothing else touches adapters.

Control-flow model (`complete`):
    1. Validate provider name, message text, and credentials. No mutation yet.
    2. Append the user message. It stays stored whatever happens downstream.
    3. Read the whole session transcript (no truncation at this layer).
    4. Dispatch to the registered adapter with the fixed reply ceiling.
    5. Append the assistant reply and return it.

Error handling strategy:
    `ValidationError` and `UnsupportedProviderError` are raised before step 2.
    `ProviderRequestError` from steps 3-4 is logged and re-raised without an
    assistant append; the user message stays in the transcript for a retry.

Concurrency:
    The provider call is the only blocking point. With `serialize_sessions`
    enabled, steps 2-5 run under a per-session lock so concurrent turns on the
    same session never read a transcript missing another turn's append. Calls on
    different sessions never wait on each other.
"""

import logging
import threading
from contextlib import contextmanager

from chat_relay.core.errors import (
    ProviderRequestError,
    UnsupportedProviderError,
    ValidationError,
)
from chat_relay.core.models import Message, Role
from chat_relay.llm.provider_config import (
    MAX_REPLY_TOKENS,
    NO_RESPONSE_SENTINEL,
    SERIALIZE_SESSIONS,
    load_key,
)
from chat_relay.llm.registry import AdapterRegistry, build_default_registry
from chat_relay.memory.transcript_store import TranscriptStore


logger = logging.getLogger(__name__)


def _require_text(value, label):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} must not be empty")


class CompletionRouter:
    """Provider-agnostic chat turn orchestration.

    Args:
        store: Transcript store shared with the API layer.
        registry: Provider adapters. Defaults to `build_default_registry()`.
        max_reply_tokens: Fixed reply ceiling passed to every adapter.
        serialize_sessions: Hold a per-session lock around each turn.
        key_loader: Credential fallback used when a caller supplies no key.
    """

    def __init__(
        self,
        store: TranscriptStore,
        registry: AdapterRegistry | None = None,
        max_reply_tokens: int = MAX_REPLY_TOKENS,
        serialize_sessions: bool = SERIALIZE_SESSIONS,
        key_loader=load_key,
    ):
        self.store = store
        self.registry = registry if registry is not None else build_default_registry()
        self.max_reply_tokens = max_reply_tokens
        self.serialize_sessions = serialize_sessions
        self._key_loader = key_loader
        # session id -> [lock, holders]; an entry lives only while a turn holds or waits on it.
        self._session_locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    # ============================================================
    # Session locking
    # ============================================================

    @contextmanager
    def _session_turn(self, session_id):
        if not self.serialize_sessions:
            yield
            return

        with self._locks_guard:
            entry = self._session_locks.setdefault(session_id, [threading.Lock(), 0])
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._session_locks[session_id]

    # ============================================================
    # Server-side completion
    # ============================================================

    def _resolve_credentials(self, adapter, credentials):
        if credentials:
            return credentials
        fallback = self._key_loader(adapter.name) if self._key_loader else None
        if adapter.requires_key and not fallback:
            raise ValidationError(f"API key is required for provider {adapter.name!r}")
        return fallback

    def complete(self, session_id: str, provider: str, message: str, credentials: str | None = None) -> Message:
        """Run one chat turn and return the stored assistant message.

        Args:
            session_id: Session whose transcript is extended and replayed.
            provider: Registered server-side provider name.
            message: User text; must be non-empty after trimming.
            credentials: Provider API key. Falls back to configured keys.

        Raises:
            UnsupportedProviderError: unknown or client-side provider. No mutation.
            ValidationError: empty message/session or missing key. No mutation.
            ProviderRequestError: upstream failure. Only the user message is stored.
        """
        adapter = self.registry.get(provider)
        _require_text(session_id, "Session id")
        _require_text(message, "Message content")
        api_key = self._resolve_credentials(adapter, credentials)

        with self._session_turn(session_id):
            self.store.append(session_id, Role.USER, message)
            history = self.store.read(session_id)

            try:
                reply = adapter.send(history, api_key, self.max_reply_tokens)
            except ProviderRequestError as err:
                logger.warning(
                    "Provider request failed: session=%s provider=%s kind=%s status=%s",
                    session_id,
                    adapter.name,
                    err.kind,
                    err.status,
                )
                raise

            if not isinstance(reply, str) or not reply.strip():
                reply = NO_RESPONSE_SENTINEL

            assistant = self.store.append(session_id, Role.ASSISTANT, reply, provider=adapter.name)

        logger.info(
            "Completed turn: session=%s provider=%s history=%d",
            session_id,
            adapter.name,
            len(history),
        )
        return assistant

    # ============================================================
    # Externally computed replies
    # ============================================================

    def record_external_reply(self, session_id: str, provider: str, message: str, reply: str | None) -> Message:
        """Store a turn whose reply was computed outside the relay.

        The user message and the reply are appended in that order under the same
        per-session lock as `complete`. An empty reply degrades to the sentinel.

        Raises:
            UnsupportedProviderError: `provider` is not registered as client-side.
            ValidationError: empty message or session id. No mutation.
        """
        if not self.registry.is_client_side(provider):
            raise UnsupportedProviderError(provider, "provider is not client-side")
        _require_text(session_id, "Session id")
        _require_text(message, "Message content")

        if not isinstance(reply, str) or not reply.strip():
            reply = NO_RESPONSE_SENTINEL

        with self._session_turn(session_id):
            self.store.append(session_id, Role.USER, message)
            assistant = self.store.append(session_id, Role.ASSISTANT, reply, provider=provider)

        logger.info("Recorded external reply: session=%s provider=%s", session_id, provider)
        return assistant

    # ============================================================
    # Transcript access for adapter layers
    # ============================================================

    def list_messages(self, session_id: str) -> list[Message]:
        return self.store.read(session_id)

    def clear_session(self, session_id: str) -> None:
        with self._session_turn(session_id):
            self.store.clear(session_id)
