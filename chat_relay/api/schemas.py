"""Request body schemas for the HTTP adapter.

Field names follow the browser client's camelCase JSON. Only transport-level
shape is checked here; content rules (non-blank text, known provider) are
enforced by the router so CLI and HTTP callers get identical behavior.
"""

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Body of `POST /api/chat`."""

    message: str = Field(min_length=1)
    provider: str
    session_id: str = Field(alias="sessionId", min_length=1)
    api_key: str | None = Field(default=None, alias="apiKey")


class ExternalReplyRequest(BaseModel):
    """Body of `POST /api/ai-response` for client-side providers."""

    session_id: str = Field(alias="sessionId", min_length=1)
    provider: str
    message: str = Field(min_length=1)
    content: str | None = None
