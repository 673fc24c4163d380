# Role: Conversation lifecycle endpoints. Create and clear conversations, plus a read-only snapshot for the UI
# (turn count, timestamps and the trip details picked up from user messages).
# Does NOT change any turn logic; it only touches the session store through ChatService.

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from travel_assistant.api.deps import get_chat_service
from travel_assistant.core.chat_service import ChatService
from travel_assistant.models.trip_context import TripContext

router = APIRouter(tags=["conversations"])


class ConversationCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    message: str = "Conversation created successfully"


class ConversationSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    turn_count: int = Field(alias="turnCount")
    has_continuation: bool = Field(alias="hasContinuation")
    context: TripContext = Field(default_factory=TripContext)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ConversationDeleted(BaseModel):
    message: str = "Conversation deleted successfully"


@router.post("/conversations", response_model=ConversationCreated, response_model_by_alias=True)
def create_conversation(service: ChatService = Depends(get_chat_service)) -> ConversationCreated:
    session = service.create_conversation()
    return ConversationCreated(conversation_id=session.session_id)


@router.get("/conversations/{conversation_id}", response_model=ConversationSnapshot, response_model_by_alias=True)
def get_conversation(conversation_id: str, service: ChatService = Depends(get_chat_service)) -> ConversationSnapshot:
    session = service.get_conversation(conversation_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return ConversationSnapshot(
        conversation_id=session.session_id,
        turn_count=session.turn_count,
        has_continuation=session.continuation_token is not None,
        context=session.context,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.delete("/conversations/{conversation_id}", response_model=ConversationDeleted)
def delete_conversation(conversation_id: str, service: ChatService = Depends(get_chat_service)) -> ConversationDeleted:
    # Key line: idempotent; clearing an unknown conversation is not an error.
    service.delete_conversation(conversation_id)
    return ConversationDeleted()
