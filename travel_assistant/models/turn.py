# Role: One completed user-message -> assistant-reply cycle, with the capability calls it made and the
# detection verdict for the reply. Built once per request and never mutated.

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from travel_assistant.models.invocation import CapabilityInvocation
from travel_assistant.models.verdict import Verdict


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    input_text: str
    output_text: str
    invocations: List[CapabilityInvocation] = Field(default_factory=list)
    verdict: Verdict
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
