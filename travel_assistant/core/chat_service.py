# Role: Turn pipeline used by the API and the CLI. Runs the orchestrator, scores the reply with the detection
# engine, and packages everything into an immutable Turn. Also owns conversation create/delete/snapshot.

from __future__ import annotations

import uuid
from typing import Optional

import travel_assistant.config as config
from travel_assistant.core.detection_engine import DetectionEngine
from travel_assistant.core.session_store import SessionStore
from travel_assistant.core.turn_orchestrator import TurnOrchestrator
from travel_assistant.models.session import Session
from travel_assistant.models.turn import Turn


class ChatService:
    def __init__(self, orchestrator: TurnOrchestrator, detection_engine: DetectionEngine) -> None:
        self.orchestrator = orchestrator
        self.detection_engine = detection_engine

    @property
    def session_store(self) -> SessionStore:
        return self.orchestrator.session_store

    def handle_message(self, conversation_id: Optional[str], message: str) -> Turn:
        # 1) Orchestrate the turn (ValidationError / ProviderError propagate to the caller)
        # 2) Score the final reply against the invocations made during this turn only
        # 3) Freeze into a Turn
        result = self.orchestrator.run_turn(conversation_id, message)
        verdict = self.detection_engine.evaluate(result.reply_text, result.invocations)

        if config.DEBUG and verdict.is_likely_hallucination:
            print("[CHAT] hallucination warning:", verdict.reasons)

        return Turn(
            session_id=result.session_id,
            input_text=message.strip(),
            output_text=result.reply_text,
            invocations=result.invocations,
            verdict=verdict,
        )

    def create_conversation(self) -> Session:
        return self.session_store.create(str(uuid.uuid4()))

    def get_conversation(self, conversation_id: str) -> Optional[Session]:
        return self.session_store.get(conversation_id)

    def delete_conversation(self, conversation_id: str) -> bool:
        # Fire-and-forget: an in-flight turn keeps its old continuation token.
        return self.session_store.delete(conversation_id)
