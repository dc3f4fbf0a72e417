"""Transcript data contracts shared by the store, router, and API layers.

Architectural role:
    Defines the immutable `Message` record owned by the transcript store and the
    closed role vocabulary used inside the relay. Provider-specific role names are
    mapped by the adapters in `chat_relay.llm.client`, never here.

Determinism:
    The data classes are purely structural. Identifier and timestamp generation
    happen in `chat_relay.memory.transcript_store` at append time.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Author of a transcript entry."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """One immutable transcript entry.

    Attributes:
        id: Process-wide unique identifier.
        session_id: Caller-chosen session key grouping the conversation.
        role: `Role.USER` or `Role.ASSISTANT`.
        content: Non-empty message text.
        provider: Provider name for assistant entries, `None` for user entries.
        timestamp: Timezone-aware UTC creation instant.
    """

    id: str
    session_id: str
    role: Role
    content: str
    provider: str | None
    timestamp: datetime

    def to_dict(self) -> dict:
        """Return the JSON wire shape exposed to HTTP clients."""
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "role": self.role.value,
            "content": self.content,
            "provider": self.provider,
            "timestamp": self.timestamp.isoformat(),
        }
