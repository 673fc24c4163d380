# Role: Wiring for the HTTP layer. Builds one process-wide ChatService (Gemini model + judge, default
# capabilities, in-memory session store) on first use. Routers receive it via Depends(get_chat_service),
# which tests replace through app.dependency_overrides.

from __future__ import annotations

import os
from functools import lru_cache

from travel_assistant.core.chat_service import ChatService
from travel_assistant.core.detection_engine import DetectionEngine
from travel_assistant.core.session_store import InMemorySessionStore
from travel_assistant.core.turn_orchestrator import TurnOrchestrator
from travel_assistant.llm.gemini_client import GeminiClient


@lru_cache(maxsize=1)
def get_chat_service() -> ChatService:
    # Key line: the judge runs cold (temperature 0) and may use a cheaper model than the assistant.
    model = GeminiClient(temperature=0.7)
    judge = GeminiClient(model=os.getenv("GEMINI_JUDGE_MODEL"), temperature=0.0)

    orchestrator = TurnOrchestrator(model_provider=model, session_store=InMemorySessionStore())
    return ChatService(orchestrator=orchestrator, detection_engine=DetectionEngine.from_config(judge))
