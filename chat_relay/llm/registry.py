"""Provider name -> adapter registry.

Architectural role:
    Replaces provider branching with a lookup table. Adding a provider means
    registering one more adapter; the router is untouched.

Client-side providers:
    Some providers are computed outside the relay (in the browser). They are
    registered by name only, so the router can recognise them and reject them on
    the server-side completion path while accepting their externally computed
    replies.
"""

from chat_relay.core.errors import UnsupportedProviderError
from chat_relay.llm.client import OpenAICompatibleAdapter, ProviderAdapter
from chat_relay.llm.provider_config import (
    CLIENT_SIDE_PROVIDERS,
    PROVIDERS,
    REQUEST_TIMEOUT_SECONDS,
)


class AdapterRegistry:
    """Mapping of provider names to adapters plus the client-side provider set."""

    def __init__(self):
        self._adapters: dict[str, ProviderAdapter] = {}
        self._client_side: set[str] = set()

    def register(self, adapter: ProviderAdapter) -> None:
        self._adapters[adapter.name] = adapter

    def register_client_side(self, name: str) -> None:
        self._client_side.add(name)

    def get(self, name) -> ProviderAdapter:
        """Return the server-side adapter for `name`.

        Raises:
            UnsupportedProviderError: unknown name, or a client-side provider.
        """
        if isinstance(name, str) and name in self._adapters:
            return self._adapters[name]
        if self.is_client_side(name):
            raise UnsupportedProviderError(name, "provider is computed client-side")
        raise UnsupportedProviderError(name)

    def is_client_side(self, name) -> bool:
        return isinstance(name, str) and name in self._client_side

    def names(self) -> list[str]:
        return sorted(set(self._adapters) | self._client_side)

    def describe(self) -> list[dict]:
        """Return catalogue entries for provider selectors."""
        entries = []
        for name in self.names():
            adapter = self._adapters.get(name)
            entries.append({
                "name": name,
                "requiresKey": bool(adapter and adapter.requires_key),
                "clientSide": name in self._client_side,
            })
        return entries


def build_default_registry(timeout: float = REQUEST_TIMEOUT_SECONDS) -> AdapterRegistry:
    """Build a registry from the `PROVIDERS` catalogue and client-side list."""
    registry = AdapterRegistry()
    for name, config in PROVIDERS.items():
        registry.register(OpenAICompatibleAdapter(
            name=name,
            url=config["url"],
            model=config["model"],
            requires_key=config["requires_key"],
            timeout=timeout,
        ))
    for name in CLIENT_SIDE_PROVIDERS:
        registry.register_client_side(name)
    return registry
