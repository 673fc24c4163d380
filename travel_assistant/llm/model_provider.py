# Role: Contracts the core needs from LLM backends. ModelProvider drives a tool-calling conversation behind an
# opaque continuation token; TextGenerator is a single prompt -> text call (used by the judge layers).

from __future__ import annotations

from typing import List, Optional, Protocol

from travel_assistant.models.model_io import ModelReply, ToolDeclaration, ToolOutput


class ModelProvider(Protocol):
    def respond(
        self,
        *,
        instructions: str,
        tools: List[ToolDeclaration],
        continuation_token: Optional[str] = None,
        user_text: Optional[str] = None,
        tool_outputs: Optional[List[ToolOutput]] = None,
    ) -> ModelReply:
        """
        Send either the user's text or the results of requested tools, continuing from continuation_token.
        Returns the reply text, any tool requests, and a NEW continuation token for the next call.
        Raises ProviderError on service failure.
        """
        ...


class TextGenerator(Protocol):
    def generate_text(self, prompt: str) -> str:
        ...
