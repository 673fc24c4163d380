# Role: Detection layer A. Fast, deterministic pattern checks that flag numbers and claims the reply could only
# have gotten from a capability that was never called. No external calls; every check adds to one score.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

import travel_assistant.config as config
from travel_assistant.models.invocation import CapabilityInvocation
from travel_assistant.models.verdict import LayerResult, SuggestedAction

WEATHER_CAPABILITY = "get_weather"
CURRENCY_CAPABILITY = "convert_currency"

_NUMBER = r"[-+−]?\d+(?:[.,]\d+)?"
_WEATHER_UNITS = r"(?:°\s*[cf]\b|degrees?\s+(?:celsius|fahrenheit|[cf]\b)|cm\b|mm\b|inch(?:es)?\b|km\s*/\s*h\b|kmh\b|mph\b)"
_CURRENCY_CODES = r"(?:usd|eur|gbp|chf|cad|aud|jpy|nok|sek|dkk|nzd|isk)\b"

_WEATHER_FIGURE = re.compile(rf"{_NUMBER}\s*{_WEATHER_UNITS}", re.IGNORECASE)
_CURRENCY_AMOUNT = re.compile(
    rf"[$€£]\s*\d[\d,]*(?:\.\d+)?|\b\d[\d,]*(?:\.\d+)?\s*{_CURRENCY_CODES}|\b{_CURRENCY_CODES}\s*\d[\d,]*(?:\.\d+)?",
    re.IGNORECASE,
)
_PRECISE_WEATHER = re.compile(rf"\d+\.\d{{2,}}\s*{_WEATHER_UNITS}", re.IGNORECASE)
_PRECISE_CURRENCY = re.compile(
    rf"[$€£]\s*\d[\d,]*\.\d{{2,}}|\d+\.\d{{2,}}\s*{_CURRENCY_CODES}", re.IGNORECASE
)
_ANY_NUMBER = re.compile(r"\d")

_WEATHER_VOCABULARY = re.compile(
    r"\b(?:temperatures?|temps?|snow\w*|forecast\w*|conditions|weather|precipitation|rain\w*|wind\w*|"
    r"sunny|cloudy|overcast|freezing|powder|blizzard|degrees?)\b|°",
    re.IGNORECASE,
)

HEDGING_PHRASES = (
    "probably",
    "might be",
    "could be",
    "i think",
    "i believe",
    "i guess",
    "perhaps",
    "possibly",
)


@dataclass(frozen=True)
class HeuristicWeights:
    weather_figures: float = 0.4
    weather_vocabulary: float = 0.3
    currency_amounts: float = 0.3
    hedging: float = 0.3
    over_precision: float = 0.3


class HeuristicLayer:
    name = "Heuristic"

    BLOCK_AT = 0.8
    FLAG_AT = 0.5
    VERIFY_AT = 0.3

    def __init__(
        self,
        weights: Optional[HeuristicWeights] = None,
        clean_confidence: Optional[float] = None,
    ) -> None:
        self.weights = weights or HeuristicWeights()
        # Key line: None means "read config at call time" so load_env()/monkeypatch changes apply.
        self._clean_confidence = clean_confidence

    @property
    def clean_confidence(self) -> float:
        if self._clean_confidence is not None:
            return self._clean_confidence
        return config.HEURISTIC_CLEAN_CONFIDENCE

    def analyze(self, reply_text: str, invocations: Sequence[CapabilityInvocation]) -> LayerResult:
        # 1) Work out which capability domains are grounded by an invocation
        # 2) Run each independent check, adding its weight and a reason when it fires
        # 3) Map the capped score to flag / action / confidence
        text = reply_text or ""
        low = text.lower()

        called = {inv.name for inv in invocations}
        any_call = bool(invocations)
        weather_called = WEATHER_CAPABILITY in called
        currency_called = CURRENCY_CAPABILITY in called

        reasons: List[str] = []
        score = 0.0

        has_weather_figures = bool(_WEATHER_FIGURE.search(text))
        has_numbers = bool(_ANY_NUMBER.search(text))

        if has_weather_figures and not weather_called:
            reasons.append("Response contains specific weather figures but the weather API was not called")
            score += self.weights.weather_figures

        # Key line: a figure in a weather unit is itself weather vocabulary.
        mentions_weather = has_weather_figures or bool(_WEATHER_VOCABULARY.search(text))
        if has_numbers and mentions_weather and not weather_called:
            reasons.append("Response discusses weather conditions with numbers without calling the weather API")
            score += self.weights.weather_vocabulary

        if _CURRENCY_AMOUNT.search(text) and not currency_called:
            reasons.append("Response contains currency amounts without calling the currency API")
            score += self.weights.currency_amounts

        hedges = [p for p in HEDGING_PHRASES if p in low]
        if len(hedges) > 2 and not any_call:
            reasons.append(
                f"Response contains multiple uncertain phrases ({', '.join(hedges)}) without using API data"
            )
            score += self.weights.hedging

        precise_weather = bool(_PRECISE_WEATHER.search(text)) and not weather_called
        precise_currency = bool(_PRECISE_CURRENCY.search(text)) and not currency_called
        if precise_weather or precise_currency:
            reasons.append("Response contains overly precise numbers without a data source")
            score += self.weights.over_precision

        # Key line: round away float noise (0.4 + 0.3 -> 0.7000000000000001) before threshold checks.
        score = min(round(score, 6), 1.0)

        if config.DEBUG:
            print(f"[HEURISTIC] score={score:.2f} reasons={reasons}")

        return LayerResult(
            is_likely_hallucination=score >= self.FLAG_AT,
            confidence=self._confidence(score),
            reasons=reasons,
            suggested_action=self._action(score),
        )

    def _action(self, score: float) -> Optional[SuggestedAction]:
        if score >= self.BLOCK_AT:
            return SuggestedAction.BLOCK
        if score >= self.FLAG_AT:
            return SuggestedAction.WARN
        if score >= self.VERIFY_AT:
            return SuggestedAction.VERIFY
        return None

    def _confidence(self, score: float) -> float:
        # Confident about what was flagged; equally confident when nothing fired (checks are deterministic).
        if score >= self.VERIFY_AT:
            return min(score, 1.0)
        return self.clean_confidence
