# Role: Local developer CLI to interact with ChatService without the web UI.
# Useful for deterministic testing and seeing debug logs + hallucination verdicts in the terminal.

from __future__ import annotations
import uuid
from typing import Callable, Optional

import travel_assistant.config
travel_assistant.config.load_env()

from travel_assistant.core.chat_service import ChatService
from travel_assistant.core.errors import ProviderError


def _new_session_id() -> str:
    return str(uuid.uuid4())


def _format_turn_extras(turn) -> list[str]:
    # Role: the same transparency the API gives (data sources + warning), as plain lines.
    lines: list[str] = []
    for inv in turn.invocations:
        status = "ok" if inv.ok else f"error: {inv.error}"
        lines.append(f"  [source] {inv.name}({inv.args}) -> {status}")

    verdict = turn.verdict
    if verdict.is_likely_hallucination:
        action = verdict.suggested_action.value if verdict.suggested_action else "none"
        lines.append(f"  [warning] possible hallucination (confidence={verdict.confidence:.2f}, action={action})")
        for reason in verdict.reasons:
            lines.append(f"    - {reason}")
    return lines


def main(service: Optional[ChatService] = None, read: Callable[[str], str] = input) -> None:
    # 1) Create ChatService
    # 2) Maintain a session_id across turns (/new clears the old conversation)
    # 3) Route user input -> ChatService -> print assistant output + verdict
    print("Ski Trip Assistant CLI")
    print("Commands: /new (new session), /session (show session_id), /exit")
    print("-" * 50)

    if service is None:
        from travel_assistant.api.deps import get_chat_service

        service = get_chat_service()

    session_id = _new_session_id()
    print(f"session_id: {session_id}")

    while True:
        try:
            user_message = read("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_message:
            continue

        cmd = user_message.lower()

        if cmd in {"/exit", "exit", "quit", "/quit"}:
            print("Bye!")
            return

        if cmd in {"/new", "new"}:
            service.delete_conversation(session_id)
            session_id = _new_session_id()
            print(f"New session_id: {session_id}")
            continue

        if cmd in {"/session", "session"}:
            print(f"session_id: {session_id}")
            continue

        try:
            turn = service.handle_message(session_id, user_message)
        except ProviderError as e:
            print(f"\nAssistant unavailable: {e}")
            continue

        print(f"\nAssistant: {turn.output_text}")
        for line in _format_turn_extras(turn):
            print(line)


if __name__ == "__main__":
    main()
