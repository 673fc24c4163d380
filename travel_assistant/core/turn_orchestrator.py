# Role: Orchestrator for one conversation turn. It glues together:
# session lookup/update, the model provider, and capability dispatch through the registry.
# Output is the final reply text plus every capability invocation made on the way.

from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

import travel_assistant.config as config
from travel_assistant.core.capability_registry import CapabilityRegistry, build_default_registry
from travel_assistant.core.errors import ValidationError
from travel_assistant.core.session_store import InMemorySessionStore, SessionStore
from travel_assistant.llm.model_provider import ModelProvider
from travel_assistant.models.invocation import CapabilityInvocation
from travel_assistant.models.model_io import ModelReply, ToolOutput, ToolRequest
from travel_assistant.models.trip_context import TripContext
from travel_assistant.prompts.system_prompt import build_system_prompt
from travel_assistant.utils.context_extractor import extract_context_updates

EMPTY_REPLY_TEXT = "I apologize, I could not generate a response."


@dataclass(frozen=True)
class TurnResult:
    session_id: str
    reply_text: str
    invocations: List[CapabilityInvocation]


class TurnOrchestrator:
    def __init__(
        self,
        model_provider: ModelProvider,
        session_store: Optional[SessionStore] = None,
        registry: Optional[CapabilityRegistry] = None,
        instructions: Optional[str] = None,
        max_model_rounds: Optional[int] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing/mocking.
        self.model_provider = model_provider
        self.session_store = session_store if session_store is not None else InMemorySessionStore()
        self.registry = registry if registry is not None else build_default_registry()
        self.instructions = instructions or build_system_prompt()
        self._max_model_rounds = max_model_rounds
        self._max_workers = max_workers

    @property
    def max_model_rounds(self) -> int:
        rounds = self._max_model_rounds if self._max_model_rounds is not None else config.MAX_MODEL_ROUNDS
        return max(int(rounds), 1)

    @property
    def max_workers(self) -> int:
        workers = self._max_workers if self._max_workers is not None else config.CAPABILITY_MAX_WORKERS
        return max(int(workers), 1)

    def run_turn(self, session_id: Optional[str], user_text: str) -> TurnResult:
        # 1) Validate input; new session id if none given
        # 2) Serialize turns of the same session (each depends on the previous continuation token)
        # 3) Model call with user text -> store new token + updated trip context
        # 4) While the model requests capabilities and rounds remain:
        #    dispatch (concurrently) -> send all results back in one call -> store new token
        # 5) Return reply text + invocations
        if not user_text or not user_text.strip():
            raise ValidationError("Message is required")

        session_id = (session_id or "").strip() or str(uuid.uuid4())

        with self.session_store.hold(session_id) as epoch:
            return self._run_locked(session_id, user_text.strip(), epoch)

    def _run_locked(self, session_id: str, user_text: str, epoch: int) -> TurnResult:
        session = self.session_store.get(session_id)
        token = session.continuation_token if session else None
        context = session.context if session else TripContext()
        context.apply_updates(extract_context_updates(user_text))
        tools = self.registry.declarations()

        if config.DEBUG:
            print("\n--- TURN DEBUG ---")
            print("SESSION:", session_id)
            print("USER MESSAGE:", user_text)
            print("CONTINUATION:", token)
            print("TOOLS:", [t.name for t in tools])
            print("MAX ROUNDS:", self.max_model_rounds)
            print("------------------\n")

        reply = self.model_provider.respond(
            instructions=self.instructions,
            tools=tools,
            continuation_token=token,
            user_text=user_text,
        )
        # Key line: the first write of a turn also counts the turn and saves the context, so the store is
        # written once per round. A write after a mid-turn delete is refused by the store (epoch changed).
        self.session_store.set_continuation(
            session_id, reply.continuation_token, new_turn=True, epoch=epoch, context=context
        )
        rounds = 1

        invocations: List[CapabilityInvocation] = []

        while reply.tool_requests and rounds < self.max_model_rounds:
            round_invocations = self._dispatch_round(reply.tool_requests)
            invocations.extend(round_invocations)

            outputs = [
                ToolOutput(call_id=req.call_id, name=inv.name, output=inv.payload())
                for req, inv in zip(reply.tool_requests, round_invocations)
            ]
            reply = self.model_provider.respond(
                instructions=self.instructions,
                tools=tools,
                continuation_token=reply.continuation_token,
                tool_outputs=outputs,
            )
            self.session_store.set_continuation(session_id, reply.continuation_token, epoch=epoch)
            rounds += 1

        if reply.tool_requests and config.DEBUG:
            # Key line: round cap reached; unanswered requests are dropped and the available text is returned.
            print(
                f"[TURN] round cap {self.max_model_rounds} reached; ignoring "
                f"{[r.name for r in reply.tool_requests]}"
            )

        reply_text = self._final_text(reply)
        return TurnResult(session_id=session_id, reply_text=reply_text, invocations=invocations)

    def _dispatch_round(self, requests_: List[ToolRequest]) -> List[CapabilityInvocation]:
        # Role: run all requests of one round; each succeeds or fails on its own, results keep request order.
        if len(requests_) == 1:
            return [self._dispatch_one(requests_[0])]

        workers = min(self.max_workers, len(requests_))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self._dispatch_one, requests_))

    def _dispatch_one(self, request: ToolRequest) -> CapabilityInvocation:
        result = self.registry.dispatch(request.name, request.args)

        if config.DEBUG:
            status = "ok" if result.ok else f"error: {result.error}"
            print(f"[TURN] capability {request.name}({request.args}) -> {status}")

        return CapabilityInvocation(
            name=request.name,
            args=result.args if result.args is not None else dict(request.args or {}),
            result=result.data if result.ok else None,
            error=None if result.ok else (result.error or "Capability failed"),
        )

    def _final_text(self, reply: ModelReply) -> str:
        text = (reply.text or "").strip()
        return text if text else EMPTY_REPLY_TEXT
