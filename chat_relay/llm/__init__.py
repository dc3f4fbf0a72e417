"""LLM access package.

Architectural role:
    Provides provider configuration, the adapter registry, and transport adapters
    used by the completion router to invoke chat-completion backends.

Module split:
    - `provider_config`: environment-driven provider catalogue and limits.
    - `client`: provider-specific HTTP transport and response parsing.
    - `registry`: provider name -> adapter lookup.
"""
