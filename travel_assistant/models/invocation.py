# Role: Record of one capability call made during a turn (name + validated args + result or error).
# Owned by the Turn that produced it; frozen so nothing downstream can rewrite what the tool returned.

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CapabilityInvocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def payload(self) -> Dict[str, Any]:
        # Role: what the model and the API see for this call (result dict or {"error": ...}).
        if self.error is not None:
            return {"error": self.error}
        return dict(self.result or {})

    def describe(self) -> str:
        # Key line: compact "name(args)" form used in judge prompts and debug output.
        args = ", ".join(f"{k}={v!r}" for k, v in self.args.items())
        suffix = f" -> error: {self.error}" if self.error is not None else ""
        return f"{self.name}({args}){suffix}"
