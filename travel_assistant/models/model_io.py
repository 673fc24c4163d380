# Role: Provider-neutral shapes exchanged between the orchestrator and a model provider:
# tool declarations going in, tool requests + text + continuation token coming out.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ToolDeclaration:
    name: str
    description: str
    parameters: Dict[str, Any]


@dataclass(frozen=True)
class ToolRequest:
    call_id: Optional[str]
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolOutput:
    call_id: Optional[str]
    name: str
    output: Dict[str, Any]


@dataclass(frozen=True)
class ModelReply:
    text: str
    tool_requests: List[ToolRequest]
    continuation_token: str
