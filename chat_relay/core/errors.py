"""Typed failures raised by the relay core.

Error taxonomy:
    - `ValidationError`: user-correctable input problems, never retried.
    - `UnsupportedProviderError`: provider name the router cannot dispatch.
    - `ProviderRequestError`: upstream failure (network, timeout, non-2xx status,
      authentication rejection, malformed body).

None of these are retried by the core. Retry policy belongs to the caller.
"""


class RelayError(Exception):
    """Base class for all relay failures."""


class ValidationError(RelayError):
    """Raised when caller input is rejected before any store mutation."""


class UnsupportedProviderError(RelayError):
    """Raised when a provider name is not dispatchable by the router."""

    def __init__(self, provider, reason: str = "unsupported provider"):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{reason}: {provider!r}")


# Failure kinds surfaced by adapters.
KIND_NETWORK = "network"
KIND_TIMEOUT = "timeout"
KIND_STATUS = "status"
KIND_AUTH = "auth"
KIND_MALFORMED = "malformed"


class ProviderRequestError(RelayError):
    """Upstream provider failure.

    Attributes:
        provider: Provider name the request was sent to.
        kind: One of `network`, `timeout`, `status`, `auth`, `malformed`.
        status: Upstream HTTP status code when one was received.
        detail: Human-readable upstream message (never contains credentials).
    """

    def __init__(self, provider: str, kind: str, status: int | None = None, detail: str = ""):
        self.provider = provider
        self.kind = kind
        self.status = status
        self.detail = detail
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        label = str(self.provider or "provider").upper()
        if self.kind == KIND_TIMEOUT:
            head = f"{label} REQUEST TIMED OUT"
        elif self.kind == KIND_MALFORMED:
            head = f"{label} MALFORMED RESPONSE"
        elif self.status:
            head = f"{label} HTTP ERROR ({self.status})"
        else:
            head = f"{label} REQUEST FAILED"
        return f"{head}: {self.detail}" if self.detail else head
