# Role: Hallucination detection engine. Runs the scoring layers over one reply and aggregates them into a Verdict:
# weighted-average confidence, OR over flags, reasons tagged by layer, most severe suggested action.
# Two modes share the same N-layer aggregation:
#   two_layer   : heuristic -> judge
#   three_layer : heuristic -> common-sense judge -> detailed judge (only when the first two show suspicion)

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import travel_assistant.config as config
from travel_assistant.core.heuristic_layer import HeuristicLayer
from travel_assistant.core.judge_layer import JudgeLayer
from travel_assistant.llm.model_provider import TextGenerator
from travel_assistant.models.invocation import CapabilityInvocation
from travel_assistant.models.verdict import LayerResult, Verdict, most_severe
from travel_assistant.prompts.judge_prompt import build_common_sense_prompt, build_judge_prompt

TWO_LAYER_WEIGHTS = {"Heuristic": 0.4, "LLM Judge": 0.6}
THREE_LAYER_WEIGHTS = {"Heuristic": 0.2, "Common Sense": 0.3, "LLM Judge": 0.5}

_WEIGHT_TOLERANCE = 1e-6


class DetectionLayer(Protocol):
    name: str

    def analyze(self, reply_text: str, invocations: Sequence[CapabilityInvocation]) -> LayerResult:
        ...


@dataclass(frozen=True)
class LayerSpec:
    layer: DetectionLayer
    weight: float
    # Key line: conditional layers only run when an earlier layer showed any suspicion.
    conditional: bool = False


def aggregate_layers(results: Sequence[Tuple[str, float, LayerResult]]) -> Verdict:
    # 1) Validate weights (sum to 1)
    # 2) Weighted average of confidences, clamped to [0, 1]
    # 3) OR over flags, reasons in layer order prefixed with "[<layer>] ", max-severity action
    if not results:
        raise ValueError("aggregate_layers() needs at least one layer result")

    total_weight = sum(weight for _, weight, _ in results)
    if abs(total_weight - 1.0) > _WEIGHT_TOLERANCE:
        raise ValueError(f"Layer weights must sum to 1 (got {total_weight:.4f})")

    confidence = sum(weight * result.confidence for _, weight, result in results)
    confidence = min(max(round(confidence, 6), 0.0), 1.0)

    reasons: List[str] = []
    for name, _, result in results:
        reasons.extend(f"[{name}] {reason}" for reason in result.reasons)

    return Verdict(
        is_likely_hallucination=any(result.is_likely_hallucination for _, _, result in results),
        confidence=confidence,
        reasons=reasons,
        suggested_action=most_severe([result.suggested_action for _, _, result in results]),
    )


class DetectionEngine:
    def __init__(self, layers: Sequence[LayerSpec]) -> None:
        if not layers:
            raise ValueError("DetectionEngine needs at least one layer")
        if any(spec.weight <= 0 for spec in layers):
            raise ValueError("Layer weights must be positive")
        if layers[0].conditional:
            raise ValueError("The first layer cannot be conditional")
        total = sum(spec.weight for spec in layers)
        if abs(total - 1.0) > _WEIGHT_TOLERANCE:
            raise ValueError(f"Layer weights must sum to 1 (got {total:.4f})")
        self.layers = list(layers)

    @classmethod
    def two_layer(
        cls,
        judge_client: TextGenerator,
        heuristic: Optional[HeuristicLayer] = None,
        weights: Optional[Dict[str, float]] = None,
    ) -> "DetectionEngine":
        w = weights or TWO_LAYER_WEIGHTS
        return cls(
            [
                LayerSpec(heuristic or HeuristicLayer(), w["Heuristic"]),
                LayerSpec(JudgeLayer(judge_client, name="LLM Judge", prompt_builder=build_judge_prompt), w["LLM Judge"]),
            ]
        )

    @classmethod
    def three_layer(
        cls,
        judge_client: TextGenerator,
        common_sense_client: Optional[TextGenerator] = None,
        heuristic: Optional[HeuristicLayer] = None,
        weights: Optional[Dict[str, float]] = None,
    ) -> "DetectionEngine":
        w = weights or THREE_LAYER_WEIGHTS
        return cls(
            [
                LayerSpec(heuristic or HeuristicLayer(), w["Heuristic"]),
                LayerSpec(
                    JudgeLayer(
                        common_sense_client or judge_client,
                        name="Common Sense",
                        prompt_builder=build_common_sense_prompt,
                    ),
                    w["Common Sense"],
                ),
                LayerSpec(
                    JudgeLayer(judge_client, name="LLM Judge", prompt_builder=build_judge_prompt),
                    w["LLM Judge"],
                    conditional=True,
                ),
            ]
        )

    @classmethod
    def from_config(cls, judge_client: TextGenerator, common_sense_client: Optional[TextGenerator] = None) -> "DetectionEngine":
        if config.DETECTION_MODE == "three_layer":
            return cls.three_layer(judge_client, common_sense_client=common_sense_client)
        return cls.two_layer(judge_client)

    def evaluate(self, reply_text: str, invocations: Sequence[CapabilityInvocation]) -> Verdict:
        # 1) Run unconditional layers in order
        # 2) Run conditional layers only if something earlier looked suspicious
        # 3) Aggregate; skipped layers drop out and the remaining weights are renormalized
        ran: List[Tuple[str, float, LayerResult]] = []
        suspicious = False

        if config.DEBUG:
            print(f"\n--- DETECTION ENGINE ({len(self.layers)} layers) ---")

        for spec in self.layers:
            if spec.conditional and not suspicious:
                if config.DEBUG:
                    print(f"  {spec.layer.name}: skipped (no earlier suspicion)")
                continue

            result = spec.layer.analyze(reply_text, invocations)
            suspicious = suspicious or result.suspicious
            ran.append((spec.layer.name, spec.weight, result))

            if config.DEBUG:
                print(
                    f"  {spec.layer.name}: confidence={result.confidence:.2f}, "
                    f"flagged={result.is_likely_hallucination}"
                )

        total = sum(weight for _, weight, _ in ran)
        normalized = [(name, weight / total, result) for name, weight, result in ran]
        verdict = aggregate_layers(normalized)

        if config.DEBUG:
            action = verdict.suggested_action.value if verdict.suggested_action else "none"
            print(
                f"  Final: confidence={verdict.confidence:.2f}, "
                f"hallucination={verdict.is_likely_hallucination}, action={action}"
            )
            print("------------------------------------\n")

        return verdict
