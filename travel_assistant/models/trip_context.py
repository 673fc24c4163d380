# Role: What the user has told us about their trip so far (ski level, budget, dates, last resort/country).
# Filled from user messages by utils/context_extractor.py and exposed in the conversation snapshot.
# apply_updates() merges incremental updates; later mentions replace earlier ones.

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TripContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ski_level: Optional[str] = Field(default=None, alias="skiLevel")
    budget: Optional[str] = None
    travel_dates: Optional[str] = Field(default=None, alias="travelDates")
    last_mentioned_resort: Optional[str] = Field(default=None, alias="lastMentionedResort")
    last_mentioned_country: Optional[str] = Field(default=None, alias="lastMentionedCountry")

    def apply_updates(self, updates: Dict[str, Any]) -> None:
        # 1) Ignore empty updates
        # 2) Keep only known fields with non-blank string values
        if not updates:
            return

        for field in type(self).model_fields:
            value = updates.get(field)
            if isinstance(value, str) and value.strip():
                setattr(self, field, value.strip())
