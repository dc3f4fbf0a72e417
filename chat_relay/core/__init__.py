"""Core orchestration package.

Architectural role:
    Holds the transcript data contracts, the relay error taxonomy, and the
    completion router that sits between API/CLI entrypoints and the memory and
    LLM subsystems.

Composition:
    - `models`: immutable `Message` and `Role`.
    - `errors`: typed failures shared by every layer.
    - `engine`: `CompletionRouter`, the per-turn control flow.
"""
