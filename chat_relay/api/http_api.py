"""
HTTP API adapter for the chat relay.

Architectural role:
- Expose the transcript and completion operations to the browser client.
- Parse request bodies into pydantic schemas.
- Delegate every chat turn to `chat_relay.core.engine.CompletionRouter`.
- Map typed relay failures onto HTTP status codes.

Endpoints:
- `GET /api/providers`: provider catalogue for the provider selector.
- `GET /api/messages/{session_id}`: ordered transcript of one session.
- `POST /api/chat`: run one server-side completion turn.
- `DELETE /api/messages/{session_id}`: clear one session.
- `POST /api/ai-response`: store a turn computed by a client-side provider.

Error handling strategy:
- Schema failures -> 400 `{"error": "Invalid request data", "details": [...]}`.
- `ValidationError` / `UnsupportedProviderError` -> 400.
- `ProviderRequestError` -> 502 (504 for timeouts) with provider and kind.

Side effects:
- The blocking provider call runs in a worker thread via `asyncio.to_thread`.
- Loads environment variables at import time via `load_dotenv()`.
- Applies `LOG_LEVEL` on application startup, not at import.

Serve with `uvicorn chat_relay.api.http_api:app`.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chat_relay.api.schemas import ChatRequest, ExternalReplyRequest
from chat_relay.core.engine import CompletionRouter
from chat_relay.core.errors import (
    KIND_TIMEOUT,
    ProviderRequestError,
    UnsupportedProviderError,
    ValidationError,
)
from chat_relay.llm.provider_config import configure_logging
from chat_relay.memory.transcript_store import TranscriptStore


logger = logging.getLogger(__name__)


def create_app(router: CompletionRouter | None = None) -> FastAPI:
    """Build the FastAPI application around one router instance.

    Args:
        router: Router to serve. Defaults to a router over a fresh in-memory
            transcript store and the default provider registry.
    """
    @asynccontextmanager
    async def lifespan(application: FastAPI):
        configure_logging()
        yield

    api = FastAPI(title="chat-relay", lifespan=lifespan)
    api.state.router = router if router is not None else CompletionRouter(TranscriptStore())

    # ============================================================
    # Error mapping
    # ============================================================

    @api.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request data", "details": jsonable_encoder(exc.errors())},
        )

    @api.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @api.exception_handler(UnsupportedProviderError)
    async def handle_unsupported_provider(request: Request, exc: UnsupportedProviderError):
        return JSONResponse(
            status_code=400,
            content={"error": str(exc), "provider": jsonable_encoder(exc.provider)},
        )

    @api.exception_handler(ProviderRequestError)
    async def handle_provider_failure(request: Request, exc: ProviderRequestError):
        return JSONResponse(
            status_code=504 if exc.kind == KIND_TIMEOUT else 502,
            content={
                "error": str(exc),
                "provider": exc.provider,
                "kind": exc.kind,
                "status": exc.status,
            },
        )

    # ============================================================
    # Routes
    # ============================================================

    @api.get("/api/providers")
    def list_providers():
        return api.state.router.registry.describe()

    @api.get("/api/messages/{session_id}")
    def list_messages(session_id: str):
        return [m.to_dict() for m in api.state.router.list_messages(session_id)]

    @api.post("/api/chat")
    async def send_chat(body: ChatRequest):
        message = await asyncio.to_thread(
            api.state.router.complete,
            body.session_id,
            body.provider,
            body.message,
            body.api_key,
        )
        return {"message": message.to_dict()}

    @api.delete("/api/messages/{session_id}")
    def clear_session(session_id: str):
        api.state.router.clear_session(session_id)
        return {"success": True}

    @api.post("/api/ai-response")
    def record_external_reply(body: ExternalReplyRequest):
        message = api.state.router.record_external_reply(
            body.session_id,
            body.provider,
            body.message,
            body.content,
        )
        return {"message": message.to_dict()}

    return api


app = create_app()
