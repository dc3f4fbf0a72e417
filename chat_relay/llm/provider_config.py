"""Provider/runtime configuration for the completion layer.

Architectural role:
    Centralizes the provider catalogue, generation ceiling, transport timeout, and
    credential lookup consumed by `chat_relay.llm.client`, `chat_relay.llm.registry`
    and `chat_relay.core.engine`.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`. The router turns a missing key
    for a provider that requires one into a `ValidationError`.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name, default):
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Provider used by the CLI when none is given on the command line.
DEFAULT_PROVIDER = os.getenv("PROVIDER", "openai")

# Fixed reply ceiling applied to every provider call; callers cannot override it.
MAX_REPLY_TOKENS = _env_int("MAX_REPLY_TOKENS", 1000)

# Upper bound for a single provider HTTP call.
REQUEST_TIMEOUT_SECONDS = _env_int("REQUEST_TIMEOUT_SECONDS", 30)

# Hold a per-session lock around append -> read -> append in the router.
SERIALIZE_SESSIONS = _env_bool("SERIALIZE_SESSIONS", True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

KEY_DIR = os.getenv("KEY_DIR", "config")

# Reply text stored when a provider answers successfully without any text.
NO_RESPONSE_SENTINEL = "No response received"


# OpenAI-compatible endpoint map. Every entry speaks the same wire format:
# bearer auth, `{model, messages, max_tokens}` in, `choices[0].message.content` out.
PROVIDERS = {

    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "model": os.getenv("OPENAI_MODEL", "gpt-4o"),
        "requires_key": True,
    },

    "deepseek": {
        "url": "https://api.deepseek.com/chat/completions",
        "model": os.getenv("DEEPSEEK_MODEL", "deepseek-chat"),
        "requires_key": True,
    },

    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "model": os.getenv("GROQ_MODEL", "llama-3.1-8b-instant"),
        "requires_key": True,
    },

    "mistral": {
        "url": "https://api.mistral.ai/v1/chat/completions",
        "model": os.getenv("MISTRAL_MODEL", "mistral-small-latest"),
        "requires_key": True,
    },

    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "model": os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini"),
        "requires_key": True,
    },

    "together": {
        "url": "https://api.together.xyz/v1/chat/completions",
        "model": os.getenv("TOGETHER_MODEL", "meta-llama/Llama-3-8b-chat-hf"),
        "requires_key": True,
    },

    "local": {
        "url": os.getenv("LOCAL_LLM_URL", "http://127.0.0.1:8080/v1/chat/completions"),
        "model": os.getenv("LOCAL_MODEL", "qwen2.5:3b"),
        "requires_key": False,
    },

}

# Providers computed outside the relay (in the browser). Their replies enter the
# transcript through `CompletionRouter.record_external_reply`.
CLIENT_SIDE_PROVIDERS = ("puter",)


def load_key(provider_name):
    """Load a provider API key from environment override or key file.

    Resolution order:
        1. Environment variable `<PROVIDER>_API_KEY` (for example `OPENAI_API_KEY`).
        2. Raw file contents at `<KEY_DIR>/<provider>.key`.

    Args:
        provider_name: Provider catalogue name or `None`.

    Returns:
        Key string or `None` when not available.
    """
    if not provider_name:
        return None
    env_value = os.getenv(f"{provider_name.upper()}_API_KEY")
    if env_value:
        return env_value
    path = os.path.join(KEY_DIR, f"{provider_name}.key")
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None


def configure_logging(level=None):
    """Apply the process-wide log level once for HTTP/CLI entrypoints."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
