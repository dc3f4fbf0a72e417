"""Conversational relay: session transcripts plus multi-provider chat completion."""
