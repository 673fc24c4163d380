# Role: Per-conversation session record. The continuation token is the provider-issued handle that lets the
# model recall earlier turns; it is replaced (never appended) after each model round.

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from travel_assistant.models.trip_context import TripContext


class Session(BaseModel):
    session_id: str

    # Key line: opaque to the core; only the model provider can interpret it.
    continuation_token: Optional[str] = None

    turn_count: int = 0
    context: TripContext = Field(default_factory=TripContext)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
