"""Session-keyed transcript storage.

Purpose of this abstraction:
    Own the ordered message history of every session. A session is not a stored
    entity: it is the implicit group of messages sharing a `session_id`, created by
    the first append and removed by `clear`.

Backends:
    Storage is delegated to an injectable `TranscriptBackend`. The default
    `InMemoryTranscriptBackend` keeps one list per session in process memory; a
    persistent backend only needs to implement the same four methods.

Ordering:
    Appends are serialized by a store-level lock. Timestamps are clamped so they
    never decrease within a session even if the wall clock steps backwards, so
    creation order and timestamp order always agree.

Side effects:
    None beyond the backend collection. The store has no provider awareness.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Protocol

from chat_relay.core.errors import ValidationError
from chat_relay.core.models import Message, Role


logger = logging.getLogger(__name__)


class TranscriptBackend(Protocol):
    """Minimal collection interface required by `TranscriptStore`."""

    def add(self, message: Message) -> None:
        """Persist `message` after every message already stored for its session."""
        ...

    def fetch(self, session_id: str) -> list[Message]:
        """Return the session's messages in insertion order."""
        ...

    def last(self, session_id: str) -> Message | None:
        """Return the most recent message of the session, or `None`."""
        ...

    def delete(self, session_id: str) -> None:
        """Drop every message of the session. Unknown sessions are a no-op."""
        ...


class InMemoryTranscriptBackend:
    """Process-local backend: one list per session id."""

    def __init__(self):
        self._sessions: dict[str, list[Message]] = {}

    def add(self, message: Message) -> None:
        self._sessions.setdefault(message.session_id, []).append(message)

    def fetch(self, session_id: str) -> list[Message]:
        return list(self._sessions.get(session_id, ()))

    def last(self, session_id: str) -> Message | None:
        messages = self._sessions.get(session_id)
        return messages[-1] if messages else None

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TranscriptStore:
    """Append-only transcript per session with explicit clear.

    Args:
        backend: Storage collection. Defaults to a fresh in-memory backend.
        clock: Zero-argument callable returning an aware `datetime`. Injected by
            tests; defaults to UTC wall-clock time.
    """

    def __init__(self, backend: TranscriptBackend | None = None, clock=None):
        self._backend = backend if backend is not None else InMemoryTranscriptBackend()
        self._clock = clock or _utcnow
        self._lock = threading.Lock()

    def append(
        self,
        session_id: str,
        role: Role | str,
        content: str,
        provider: str | None = None,
    ) -> Message:
        """Create, store, and return a new message.

        Raises:
            ValidationError: `content` is empty after trimming, `session_id` is
                blank, or `role` is not a known role.
        """
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Message content must not be empty")
        if not isinstance(session_id, str) or not session_id.strip():
            raise ValidationError("Session id must not be empty")
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(f"Unknown message role: {role!r}") from None

        with self._lock:
            timestamp = self._clock()
            previous = self._backend.last(session_id)
            if previous is not None and timestamp < previous.timestamp:
                timestamp = previous.timestamp

            message = Message(
                id=uuid.uuid4().hex,
                session_id=session_id,
                role=role,
                content=content,
                provider=provider,
                timestamp=timestamp,
            )
            self._backend.add(message)

        logger.debug("Appended %s message to session %s", role.value, session_id)
        return message

    def read(self, session_id: str) -> list[Message]:
        """Return the session's messages in creation order (empty if unknown)."""
        with self._lock:
            return self._backend.fetch(session_id)

    def clear(self, session_id: str) -> None:
        """Remove every message of the session. Idempotent."""
        with self._lock:
            self._backend.delete(session_id)
        logger.info("Cleared session %s", session_id)
