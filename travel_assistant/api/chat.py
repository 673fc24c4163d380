# Role: Thin HTTP adapter for the chat endpoint. Validates request/response shapes and delegates the entire
# conversation turn to ChatService (business logic lives in core, not in the API layer).

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from travel_assistant.api.deps import get_chat_service
from travel_assistant.core.chat_service import ChatService
from travel_assistant.models.turn import Turn

router = APIRouter(tags=["chat"])

WARNING_MESSAGE = "This response may contain unverified information. Please verify important details."


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    message: str


class HallucinationWarning(BaseModel):
    type: str = "hallucination"
    confidence: float
    reasons: List[str]
    message: str = WARNING_MESSAGE


class DataSource(BaseModel):
    type: str
    data: Dict[str, Any]


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    message: str
    timestamp: datetime
    warning: Optional[HallucinationWarning] = None
    data_sources: Optional[List[DataSource]] = Field(default=None, alias="dataSources")


def build_chat_response(turn: Turn) -> ChatResponse:
    # 1) warning only when the verdict flags the reply
    # 2) dataSources only when capabilities were invoked (one entry per invocation, errors included)
    warning = None
    if turn.verdict.is_likely_hallucination:
        warning = HallucinationWarning(confidence=turn.verdict.confidence, reasons=list(turn.verdict.reasons))

    data_sources = None
    if turn.invocations:
        data_sources = [DataSource(type=inv.name, data=inv.payload()) for inv in turn.invocations]

    return ChatResponse(
        conversation_id=turn.session_id,
        message=turn.output_text,
        timestamp=datetime.now(timezone.utc),
        warning=warning,
        data_sources=data_sources,
    )


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True, response_model_by_alias=True)
def chat(req: ChatRequest, service: ChatService = Depends(get_chat_service)) -> ChatResponse:
    # 1) Forward (conversation_id, message) to the turn pipeline
    # 2) Return reply + optional warning/data sources in a stable schema for UI/clients
    turn = service.handle_message(req.conversation_id, req.message)
    return build_chat_response(turn)
