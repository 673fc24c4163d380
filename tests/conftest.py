"""Shared fakes for the turn pipeline: a scripted model provider, judge clients and capability clients."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest

import travel_assistant.config as config
from travel_assistant.core.capability_registry import build_default_registry
from travel_assistant.core.chat_service import ChatService
from travel_assistant.core.detection_engine import DetectionEngine
from travel_assistant.core.session_store import InMemorySessionStore
from travel_assistant.core.turn_orchestrator import TurnOrchestrator
from travel_assistant.models.model_io import ModelReply, ToolRequest
from travel_assistant.tools.currency_client import CurrencyToolResult
from travel_assistant.tools.weather_client import WeatherToolResult

ASPEN_WEATHER = {
    "location": "Aspen",
    "temperature": -4,
    "condition": "Light Snow",
    "snowfall": 3,
    "windSpeed": 12,
    "forecast": [
        {"date": "2026-01-10", "tempHigh": -2, "tempLow": -11, "snowfall": 5, "condition": "Snow"},
    ],
    "units": "celsius",
    "skiConditions": "Excellent skiing conditions with good snow quality. Fresh snow expected.",
}


class ScriptedProvider:
    """Model provider that replays scripted replies and records every call it receives."""

    def __init__(self, replies: List[Dict[str, Any]]) -> None:
        self._replies = list(replies)
        self.calls: List[Dict[str, Any]] = []
        self._issued = 0

    def respond(self, *, instructions, tools, continuation_token=None, user_text=None, tool_outputs=None):
        self.calls.append(
            {
                "instructions": instructions,
                "tools": [t.name for t in tools],
                "continuation_token": continuation_token,
                "user_text": user_text,
                "tool_outputs": list(tool_outputs or []),
            }
        )
        script = self._replies.pop(0) if self._replies else {"text": "ok"}
        if isinstance(script, Exception):
            raise script
        self._issued += 1
        return ModelReply(
            text=script.get("text", ""),
            tool_requests=[
                ToolRequest(call_id=f"call-{i}", name=name, args=args)
                for i, (name, args) in enumerate(script.get("tools", []))
            ],
            continuation_token=f"tok-{self._issued}",
        )


class FakeJudge:
    """TextGenerator returning a fixed judge answer (or raising ProviderError)."""

    def __init__(self, answer: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.answer = answer if answer is not None else judge_json(False, 0.9, [], "trustworthy")
        self.error = error
        self.prompts: List[str] = []

    def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer


def judge_json(flag: bool, confidence: float, concerns: List[str], severity: str) -> str:
    return json.dumps(
        {"isLikelyHallucination": flag, "confidence": confidence, "concerns": concerns, "severity": severity}
    )


class FakeWeatherClient:
    def __init__(self, data: Optional[Dict[str, Any]] = None, error: Optional[str] = None) -> None:
        self.data = data if data is not None else ASPEN_WEATHER
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def get_weather(self, location: str, units: str = "celsius") -> WeatherToolResult:
        self.calls.append({"location": location, "units": units})
        if self.error:
            return WeatherToolResult(ok=False, data={}, error=self.error)
        return WeatherToolResult(ok=True, data=dict(self.data, location=location))


class FakeCurrencyClient:
    def __init__(self, rate: float = 0.8812, error: Optional[str] = None) -> None:
        self.rate = rate
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def convert(self, *, from_ccy: str, to_ccy: str, amount: Optional[float] = None) -> CurrencyToolResult:
        self.calls.append({"from": from_ccy, "to": to_ccy, "amount": amount})
        if self.error:
            return CurrencyToolResult(ok=False, data={}, error=self.error)
        data: Dict[str, Any] = {"from": from_ccy, "to": to_ccy, "rate": self.rate}
        if amount is not None:
            data["amount"] = amount
            data["converted"] = round(amount * self.rate, 2)
        return CurrencyToolResult(ok=True, data=data)


@pytest.fixture(autouse=True)
def default_config(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep tests independent of a developer's .env.
    monkeypatch.setattr(config, "DEBUG", False)
    monkeypatch.setattr(config, "MAX_MODEL_ROUNDS", 2)
    monkeypatch.setattr(config, "HEURISTIC_CLEAN_CONFIDENCE", 0.7)
    monkeypatch.setattr(config, "DETECTION_MODE", "two_layer")
    monkeypatch.setattr(config, "CAPABILITY_MAX_WORKERS", 4)


@pytest.fixture
def weather_client() -> FakeWeatherClient:
    return FakeWeatherClient()


@pytest.fixture
def currency_client() -> FakeCurrencyClient:
    return FakeCurrencyClient()


@pytest.fixture
def registry(weather_client: FakeWeatherClient, currency_client: FakeCurrencyClient):
    return build_default_registry(weather_client=weather_client, currency_client=currency_client)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


def make_service(
    provider: ScriptedProvider,
    registry,
    session_store: InMemorySessionStore,
    judge: Optional[FakeJudge] = None,
) -> ChatService:
    orchestrator = TurnOrchestrator(model_provider=provider, session_store=session_store, registry=registry)
    return ChatService(orchestrator=orchestrator, detection_engine=DetectionEngine.two_layer(judge or FakeJudge()))
