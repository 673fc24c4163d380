"""Tests for the pattern heuristic detection layer."""

from __future__ import annotations

import pytest

import travel_assistant.config as config
from travel_assistant.core.heuristic_layer import HeuristicLayer
from travel_assistant.models.invocation import CapabilityInvocation
from travel_assistant.models.verdict import SuggestedAction

WEATHER_CALL = CapabilityInvocation(name="get_weather", args={"location": "Aspen"}, result={"temperature": -5})
CURRENCY_CALL = CapabilityInvocation(
    name="convert_currency",
    args={"from": "USD", "to": "CHF", "amount": 1000},
    result={"rate": 0.8812, "converted": 881.2},
)


@pytest.fixture
def layer() -> HeuristicLayer:
    return HeuristicLayer()


class TestWeatherChecks:
    """Weather figures, vocabulary and precision."""

    def test_precise_snow_report_without_calls_blocks(self, layer: HeuristicLayer) -> None:
        result = layer.analyze("It's -5.23°C with heavy snow", [])

        assert result.is_likely_hallucination is True
        assert result.confidence >= 0.7
        assert result.suggested_action in {SuggestedAction.WARN, SuggestedAction.BLOCK}
        assert len(result.reasons) == 3

    @pytest.mark.parametrize(
        "text",
        [
            "Expect 5°C on Monday, 7°C on Tuesday and 9°C on Wednesday.",
            "Fresh snow: 10 cm, 20 cm and 35 cm over the last three days.",
            "Gusts of 20 km/h, then 30 km/h, peaking at 45 km/h.",
            "Highs of 41°F, 38°F and 35°F this week.",
        ],
    )
    def test_three_weather_figures_without_calls_flag(self, layer: HeuristicLayer, text: str) -> None:
        result = layer.analyze(text, [])

        assert result.is_likely_hallucination is True
        assert result.confidence >= 0.5

    @pytest.mark.parametrize(
        "text",
        [
            "It's -5.23°C with heavy snow",
            "Expect 5°C on Monday, 7°C on Tuesday and 9°C on Wednesday.",
            "Winds of 45.75 km/h and 12.5 cm of snow forecast.",
        ],
    )
    def test_weather_invocation_suppresses_weather_checks(self, layer: HeuristicLayer, text: str) -> None:
        result = layer.analyze(text, [WEATHER_CALL])

        assert not any("weather" in r.lower() for r in result.reasons)
        assert result.is_likely_hallucination is False
        assert result.suggested_action is None

    def test_failed_weather_invocation_still_counts_as_called(self, layer: HeuristicLayer) -> None:
        failed = CapabilityInvocation(name="get_weather", args={"location": "Atlantis"}, error="Location not found")

        result = layer.analyze("It's -5°C in Atlantis", [failed])

        assert result.reasons == []

    def test_currency_call_does_not_ground_weather_numbers(self, layer: HeuristicLayer) -> None:
        result = layer.analyze("It's -5.23°C with heavy snow", [CURRENCY_CALL])

        assert result.is_likely_hallucination is True
        assert any("weather" in r.lower() for r in result.reasons)

    def test_weather_words_need_numbers(self, layer: HeuristicLayer) -> None:
        result = layer.analyze("The snow conditions in Niseko are famous.", [])

        assert result.reasons == []


class TestCurrencyChecks:
    """Currency amounts and over-precision."""

    def test_converted_amount_without_call_warns(self, layer: HeuristicLayer) -> None:
        result = layer.analyze("1000 USD is about 881.20 CHF today.", [])

        assert result.is_likely_hallucination is True
        assert result.suggested_action == SuggestedAction.WARN
        assert result.confidence == pytest.approx(0.6)

    def test_dollar_amount_without_call_verifies(self, layer: HeuristicLayer) -> None:
        result = layer.analyze("A lift pass costs around $250.", [])

        assert result.is_likely_hallucination is False
        assert result.suggested_action == SuggestedAction.VERIFY
        assert result.confidence == pytest.approx(0.3)

    @pytest.mark.parametrize("text", ["The chalet comes to $1234.56 per week.", "Budget about €912.34 for lift passes."])
    def test_precise_symbol_amount_without_call_warns(self, layer: HeuristicLayer, text: str) -> None:
        result = layer.analyze(text, [])

        assert "Response contains overly precise numbers without a data source" in result.reasons
        assert result.suggested_action == SuggestedAction.WARN
        assert result.confidence == pytest.approx(0.6)

    def test_currency_call_suppresses_currency_checks(self, layer: HeuristicLayer) -> None:
        result = layer.analyze("1000 USD converts to 881.20 CHF at a rate of 0.8812.", [CURRENCY_CALL])

        assert result.reasons == []
        assert result.suggested_action is None


class TestHedgingAndConfidence:
    """Hedging language and the confidence mapping."""

    HEDGY = "I think Zermatt might be quieter, it could be busy in February and is probably pricey."

    def test_many_hedges_without_calls_verify(self, layer: HeuristicLayer) -> None:
        result = layer.analyze(self.HEDGY, [])

        assert result.suggested_action == SuggestedAction.VERIFY
        assert result.is_likely_hallucination is False
        assert any("uncertain" in r for r in result.reasons)

    def test_hedges_ignored_when_any_capability_ran(self, layer: HeuristicLayer) -> None:
        result = layer.analyze(self.HEDGY, [CURRENCY_CALL])

        assert result.reasons == []

    def test_two_hedges_are_not_enough(self, layer: HeuristicLayer) -> None:
        result = layer.analyze("I think Verbier is probably great.", [])

        assert result.reasons == []

    def test_clean_reply_uses_default_confidence(self, layer: HeuristicLayer) -> None:
        result = layer.analyze("Zermatt is a great resort for intermediate skiers.", [])

        assert result.is_likely_hallucination is False
        assert result.suggested_action is None
        assert result.confidence == pytest.approx(0.7)

    def test_clean_confidence_is_configurable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "HEURISTIC_CLEAN_CONFIDENCE", 0.55)

        assert HeuristicLayer().analyze("Lovely pistes.", []).confidence == pytest.approx(0.55)
        assert HeuristicLayer(clean_confidence=0.9).analyze("Lovely pistes.", []).confidence == pytest.approx(0.9)

    def test_score_is_capped_at_one(self, layer: HeuristicLayer) -> None:
        text = (
            "I think it's probably -5.23°C and might be snowing; it could be 1000.55 USD for the week. "
            "I guess bring $300."
        )

        result = layer.analyze(text, [])

        assert result.confidence == 1.0
        assert result.suggested_action == SuggestedAction.BLOCK
