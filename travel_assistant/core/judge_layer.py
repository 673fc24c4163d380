# Role: Detection layer B. Delegates the trust assessment to a second model call ("LLM as judge") that sees the
# reply and the capability calls made during the turn. Malformed judge output or a failing judge never breaks the
# turn: the layer falls back to a neutral result (no flag, zero confidence).

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

import travel_assistant.config as config
from travel_assistant.core.errors import ParseError, ProviderError
from travel_assistant.llm.model_provider import TextGenerator
from travel_assistant.models.invocation import CapabilityInvocation
from travel_assistant.models.verdict import LayerResult, SuggestedAction
from travel_assistant.prompts.judge_prompt import build_judge_prompt
from travel_assistant.utils.json_output import (
    parse_bool,
    parse_confidence,
    parse_list_of_strings,
    try_parse_json_object,
)

PromptBuilder = Callable[[str, List[CapabilityInvocation]], str]

_SEVERITY_ACTIONS = {
    "likely_fabricated": SuggestedAction.BLOCK,
    "questionable": SuggestedAction.WARN,
    "trustworthy": None,
}


class JudgeLayer:
    """
    LLM-backed judge.

    Contract:
    - The prompt asks for one JSON object: isLikelyHallucination, confidence, concerns, severity.
    - Severity tiers map to actions: likely_fabricated -> block, questionable -> warn, trustworthy -> none.
    - Anything unusable (provider failure, non-JSON, wrong shape) -> LayerResult.neutral().
    """

    def __init__(
        self,
        client: TextGenerator,
        name: str = "LLM Judge",
        prompt_builder: Optional[PromptBuilder] = None,
    ) -> None:
        self.client = client
        self.name = name
        self.prompt_builder = prompt_builder or build_judge_prompt

    def analyze(self, reply_text: str, invocations: Sequence[CapabilityInvocation]) -> LayerResult:
        # 1) Build prompt with reply + capability context
        # 2) Call the judge model
        # 3) Parse JSON (with repairs) into a LayerResult; degrade to neutral on any failure
        prompt = self.prompt_builder(reply_text or "", list(invocations))

        try:
            raw = self.client.generate_text(prompt)
        except ProviderError as e:
            if config.DEBUG:
                print(f"[{self.name.upper()}] provider failure, using neutral result: {e}")
            return LayerResult.neutral()

        try:
            result = self.parse(raw)
        except ParseError as e:
            if config.DEBUG:
                print(f"\n--- {self.name.upper()} PARSE FALLBACK ---")
                print("ERROR:", e)
                print("RAW TEXT:", raw)
                print("-----------------------------\n")
            return LayerResult.neutral()

        if config.DEBUG:
            print(
                f"[{self.name.upper()}] flagged={result.is_likely_hallucination} "
                f"confidence={result.confidence:.2f} action={result.suggested_action}"
            )
        return result

    def parse(self, raw: str) -> LayerResult:
        parsed, meta = try_parse_json_object(raw)
        if parsed is None:
            raise ParseError(f"Judge output is not a JSON object (method={meta.get('method')})")

        if meta.get("repaired") and config.DEBUG:
            print(f"WARNING: {self.name} returned non-strict JSON (repaired={meta}).")

        if "isLikelyHallucination" not in parsed and "severity" not in parsed:
            raise ParseError("Judge output is missing both isLikelyHallucination and severity")

        concerns = parse_list_of_strings(parsed.get("concerns"))
        if not concerns:
            # Key line: older prompt versions used "reasons" for the same list.
            concerns = parse_list_of_strings(parsed.get("reasons"))

        return LayerResult(
            is_likely_hallucination=parse_bool(parsed.get("isLikelyHallucination")),
            confidence=parse_confidence(parsed.get("confidence")),
            reasons=concerns,
            suggested_action=self._parse_action(parsed),
        )

    def _parse_action(self, parsed: Dict[str, Any]) -> Optional[SuggestedAction]:
        severity = parsed.get("severity")
        if isinstance(severity, str):
            key = severity.strip().lower().replace(" ", "_").replace("-", "_")
            if key in _SEVERITY_ACTIONS:
                return _SEVERITY_ACTIONS[key]

        action = parsed.get("suggestedAction")
        if isinstance(action, str):
            try:
                return SuggestedAction(action.strip().lower())
            except ValueError:
                return None
        return None
