"""Provider-specific transport adapters for chat completion requests.

Architectural role:
    Translates a domain transcript into one provider HTTP request and the provider
    response back into reply text. Adapters are polymorphic over a single
    capability, `send(history, credentials, max_reply_length) -> str`, so the
    router never branches on provider names.

Model invocation flow:
    `CompletionRouter.complete` -> registry lookup -> `adapter.send(...)` ->
    `requests.post` -> `choices[0].message.content`.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once with the
    configured timeout.

Failure handling model:
    Every transport or protocol failure is raised as `ProviderRequestError` with a
    failure kind. A well-formed JSON object without reply text is not a failure:
    it degrades to `NO_RESPONSE_SENTINEL`.
"""

import logging
from typing import Protocol, Sequence

import requests

from chat_relay.core.errors import (
    KIND_AUTH,
    KIND_MALFORMED,
    KIND_NETWORK,
    KIND_STATUS,
    KIND_TIMEOUT,
    ProviderRequestError,
)
from chat_relay.core.models import Message, Role
from chat_relay.llm.provider_config import NO_RESPONSE_SENTINEL, REQUEST_TIMEOUT_SECONDS


logger = logging.getLogger(__name__)


# Domain role -> provider role. Roles missing from a map are dropped from the
# outgoing history.
DEFAULT_ROLE_MAP = {
    Role.USER: "user",
    Role.ASSISTANT: "assistant",
}


class ProviderAdapter(Protocol):
    """Capability every provider adapter satisfies."""

    name: str
    requires_key: bool

    def send(self, history: Sequence[Message], credentials: str | None, max_reply_length: int) -> str:
        """Return reply text for `history` or raise `ProviderRequestError`."""
        ...


def _upstream_detail(response) -> str:
    """Extract a human-readable error message from a non-2xx provider response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
        if isinstance(body.get("message"), str):
            return body["message"]

    return response.reason or ""


def extract_reply_text(data) -> str:
    """Return `choices[0].message.content` or the sentinel when it is absent.

    Args:
        data: Decoded JSON object returned by the provider.

    Edge cases:
        - Missing/empty `choices`, missing `message`, and missing, non-string or
          blank `content` all yield `NO_RESPONSE_SENTINEL`.
    """
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return NO_RESPONSE_SENTINEL

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None

    if not isinstance(content, str) or not content.strip():
        return NO_RESPONSE_SENTINEL
    return content


class OpenAICompatibleAdapter:
    """Adapter for providers exposing the OpenAI chat-completions wire format.

    Args:
        name: Provider catalogue name, used for labelling and stored messages.
        url: Chat-completions endpoint.
        model: Model identifier sent in the request body.
        requires_key: Whether a bearer token must accompany every request.
        timeout: Per-request timeout in seconds.
        role_map: Domain role -> provider role vocabulary.
    """

    def __init__(
        self,
        name: str,
        url: str,
        model: str,
        requires_key: bool = True,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        role_map: dict | None = None,
    ):
        self.name = name
        self.url = url
        self.model = model
        self.requires_key = requires_key
        self.timeout = timeout
        self.role_map = dict(DEFAULT_ROLE_MAP if role_map is None else role_map)

    def translate_history(self, history: Sequence[Message]) -> list[dict]:
        """Map transcript entries onto `[{role, content}]`, dropping unmapped roles."""
        translated = []
        for message in history:
            role = self.role_map.get(message.role)
            if role is None:
                logger.debug(
                    "Excluding %s message %s from %s request",
                    message.role.value,
                    message.id,
                    self.name,
                )
                continue
            translated.append({"role": role, "content": message.content})
        return translated

    def build_headers(self, credentials: str | None) -> dict:
        headers = {"Content-Type": "application/json"}
        if credentials:
            headers["Authorization"] = f"Bearer {credentials}"
        return headers

    def build_payload(self, history: Sequence[Message], max_reply_length: int) -> dict:
        return {
            "model": self.model,
            "messages": self.translate_history(history),
            "max_tokens": max_reply_length,
        }

    def send(self, history: Sequence[Message], credentials: str | None, max_reply_length: int) -> str:
        """Send one synchronous completion request and return the reply text.

        Raises:
            ProviderRequestError: timeout, connection failure, non-2xx status
                (`auth` for 401/403), or a body that is not a JSON object.
        """
        payload = self.build_payload(history, max_reply_length)

        try:
            response = requests.post(
                self.url,
                headers=self.build_headers(credentials),
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as err:
            raise ProviderRequestError(
                self.name, KIND_TIMEOUT, detail=f"no response within {self.timeout}s"
            ) from err
        except requests.exceptions.RequestException as err:
            raise ProviderRequestError(
                self.name, KIND_NETWORK, detail=type(err).__name__
            ) from err

        if not response.ok:
            kind = KIND_AUTH if response.status_code in (401, 403) else KIND_STATUS
            raise ProviderRequestError(
                self.name, kind, status=response.status_code, detail=_upstream_detail(response)
            )

        try:
            data = response.json()
        except ValueError as err:
            raise ProviderRequestError(
                self.name, KIND_MALFORMED, status=response.status_code, detail="body is not JSON"
            ) from err

        if not isinstance(data, dict):
            raise ProviderRequestError(
                self.name, KIND_MALFORMED, status=response.status_code, detail="body is not a JSON object"
            )

        reply = extract_reply_text(data)
        if reply == NO_RESPONSE_SENTINEL:
            logger.warning("%s returned no reply text; storing sentinel", self.name)
        return reply
