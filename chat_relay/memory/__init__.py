"""Memory subsystem package.

Architectural role:
    Owns session transcripts. `transcript_store` is a leaf component with no
    provider awareness; storage backends are injected at construction.
"""
