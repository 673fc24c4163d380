# Role: Output contracts of the detection engine. LayerResult is the per-layer score (internal to the engine);
# Verdict is the aggregated, user-facing assessment. SuggestedAction carries a total severity order.

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SuggestedAction(str, Enum):
    VERIFY = "verify"
    WARN = "warn"
    BLOCK = "block"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    SuggestedAction.VERIFY: 1,
    SuggestedAction.WARN: 2,
    SuggestedAction.BLOCK: 3,
}


def action_severity(action: Optional[SuggestedAction]) -> int:
    # Key line: "no action" ranks below verify, so max() over layers is well defined.
    return 0 if action is None else action.severity


def most_severe(actions: List[Optional[SuggestedAction]]) -> Optional[SuggestedAction]:
    best: Optional[SuggestedAction] = None
    for action in actions:
        if action_severity(action) > action_severity(best):
            best = action
    return best


class LayerResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_likely_hallucination: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasons: List[str] = Field(default_factory=list)
    suggested_action: Optional[SuggestedAction] = None

    @property
    def suspicious(self) -> bool:
        return self.is_likely_hallucination or self.suggested_action is not None

    @classmethod
    def neutral(cls) -> "LayerResult":
        return cls(is_likely_hallucination=False, confidence=0.0, reasons=[], suggested_action=None)


class Verdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_likely_hallucination: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: List[str] = Field(default_factory=list)
    suggested_action: Optional[SuggestedAction] = None
