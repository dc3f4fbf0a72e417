"""
Interactive terminal client for the chat relay.

Architectural role:
- Provides a terminal-only interface over `CompletionRouter`.
- Keeps one session transcript in process memory for the lifetime of the loop.

Request lifecycle (per user turn):
1. Read a single line from stdin.
2. Handle local control commands (`exit`/`quit`, `empty chat`/`clear chat`,
   `/provider NAME`, `/history`).
3. Forward regular prompts to `CompletionRouter.complete`.
4. Print the assistant reply, or the provider failure message.

Error handling strategy:
- Relay failures are printed and the loop continues. The user message of a
  failed turn stays in the transcript, so the next turn replays it.
- EOF and keyboard interrupts terminate the loop without traceback output.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import sys
import uuid

from chat_relay.core.engine import CompletionRouter
from chat_relay.core.errors import RelayError
from chat_relay.llm.provider_config import DEFAULT_PROVIDER, configure_logging
from chat_relay.memory.transcript_store import TranscriptStore


def build_parser():
    parser = argparse.ArgumentParser(prog="chat-relay", description="Chat with a completion provider.")
    parser.add_argument("--provider", default=DEFAULT_PROVIDER, help="provider name (default: %(default)s)")
    parser.add_argument("--session", default=None, help="session id (default: random)")
    parser.add_argument("--api-key", default=None, help="provider API key (default: env/key file)")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def print_history(router, session_id):
    messages = router.list_messages(session_id)
    if not messages:
        print("(empty transcript)")
        return
    for m in messages:
        label = m.role.value if m.provider is None else f"{m.role.value}/{m.provider}"
        print(f"[{m.timestamp:%H:%M:%S}] {label}: {m.content}")


def main(argv=None, router=None):
    """Run the interactive loop.

    Args:
        argv: Command-line arguments (defaults to `sys.argv[1:]`).
        router: Router override; defaults to one over a fresh in-memory store.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    router = router or CompletionRouter(TranscriptStore())
    session_id = args.session or f"session-{uuid.uuid4().hex[:12]}"
    provider = args.provider

    print(f"Chat relay started. Session: {session_id}  Provider: {provider}")
    print("Type 'exit' to quit, 'clear chat' to reset, '/provider NAME' to switch.")
    print("-" * 60)

    while True:

        try:
            text = input("You: ").strip()

        except EOFError:
            print()
            break

        except KeyboardInterrupt:
            print("\nInterrupted.")
            break

        if not text:
            continue

        lowered = text.lower()

        if lowered in ("exit", "quit"):
            print("Shutting down.")
            break

        if lowered in ("empty chat", "clear chat"):
            router.clear_session(session_id)
            print("Chat cleared.")
            continue

        if lowered == "/history":
            print_history(router, session_id)
            continue

        if lowered.startswith("/provider"):
            parts = text.split(maxsplit=1)
            usable = [n for n in router.registry.names() if not router.registry.is_client_side(n)]
            if len(parts) == 2 and parts[1] in usable:
                provider = parts[1]
                print(f"Provider: {provider}")
            else:
                print("Known providers: " + ", ".join(usable))
            continue

        try:
            reply = router.complete(session_id, provider, text, args.api_key)
        except RelayError as err:
            print(f"Error: {err}")
            continue

        print(f"\n{reply.provider}: {reply.content}\n")
        print("-" * 60)

    return 0


if __name__ == "__main__":
    sys.exit(main())
