"""Tests for the Gemini adapter: schema translation and adapter-issued continuation tokens."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, List

import pytest
from google.genai import types

import travel_assistant.config as config
from travel_assistant.core.capability_registry import Capability, CurrencyArgs, WeatherArgs
from travel_assistant.core.errors import ProviderError
from travel_assistant.llm.gemini_client import GeminiClient, to_gemini_schema
from travel_assistant.models.model_io import ToolOutput


def text_response(text: str) -> SimpleNamespace:
    content = types.Content(role="model", parts=[types.Part.from_text(text=text)])
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)], function_calls=None, text=text)


def call_response(name: str, args: dict, call_id: str = "c1") -> SimpleNamespace:
    call = types.FunctionCall(id=call_id, name=name, args=args)
    content = types.Content(role="model", parts=[types.Part(function_call=call)])
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)], function_calls=[call], text=None)


class FakeModels:
    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.calls: List[dict] = []

    def generate_content(self, *, model, contents, config):
        snapshot = list(contents) if isinstance(contents, list) else contents
        self.calls.append({"model": model, "contents": snapshot, "config": config})
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def make_client(responses: List[Any]) -> GeminiClient:
    return GeminiClient(model="gemini-test", client=SimpleNamespace(models=FakeModels(responses)))


def _decl(name: str, model: type):
    return Capability(name=name, description=name, args_model=model, executor=lambda a: None).declaration()


class TestSchema:
    def test_weather_schema(self) -> None:
        schema = to_gemini_schema(_decl("get_weather", WeatherArgs).parameters)

        assert schema.type == types.Type.OBJECT
        assert schema.required == ["location"]
        assert schema.properties["location"].type == types.Type.STRING
        assert schema.properties["units"].enum == ["celsius", "fahrenheit"]

    def test_optional_amount_becomes_nullable_number(self) -> None:
        schema = to_gemini_schema(_decl("convert_currency", CurrencyArgs).parameters)

        amount = schema.properties["amount"]
        assert amount.type == types.Type.NUMBER
        assert amount.nullable is True
        assert sorted(schema.required) == ["from", "to"]


class TestRespond:
    def test_text_reply_issues_a_token(self) -> None:
        client = make_client([text_response("Hello skier!")])

        reply = client.respond(instructions="be nice", tools=[], user_text="Hi")

        assert reply.text == "Hello skier!"
        assert reply.tool_requests == []
        assert reply.continuation_token.startswith("gemini-")
        sent = client.client.models.calls[0]
        assert sent["model"] == "gemini-test"
        assert sent["config"].system_instruction == "be nice"
        assert len(sent["contents"]) == 1

    def test_token_restores_the_thread(self) -> None:
        client = make_client([text_response("Hi!"), text_response("Zermatt.")])

        first = client.respond(instructions="x", tools=[], user_text="Hi")
        second = client.respond(instructions="x", tools=[], continuation_token=first.continuation_token, user_text="Where?")

        contents = client.client.models.calls[1]["contents"]
        assert [c.role for c in contents] == ["user", "model", "user"]
        assert second.continuation_token != first.continuation_token

    def test_replaced_token_is_forgotten(self) -> None:
        client = make_client([text_response("a"), text_response("b"), text_response("c")])

        first = client.respond(instructions="x", tools=[], user_text="one")
        client.respond(instructions="x", tools=[], continuation_token=first.continuation_token, user_text="two")
        client.respond(instructions="x", tools=[], continuation_token=first.continuation_token, user_text="three")

        assert len(client.client.models.calls[2]["contents"]) == 1

    def test_tool_call_round_trip(self) -> None:
        client = make_client([call_response("get_weather", {"location": "Aspen"}), text_response("-4°C in Aspen.")])
        tools = [_decl("get_weather", WeatherArgs)]

        first = client.respond(instructions="x", tools=tools, user_text="Weather in Aspen?")

        assert first.tool_requests[0].name == "get_weather"
        assert first.tool_requests[0].args == {"location": "Aspen"}
        assert first.tool_requests[0].call_id == "c1"
        assert first.text == ""

        second = client.respond(
            instructions="x",
            tools=tools,
            continuation_token=first.continuation_token,
            tool_outputs=[ToolOutput(call_id="c1", name="get_weather", output={"temperature": -4})],
        )

        contents = client.client.models.calls[1]["contents"]
        response_part = contents[-1].parts[0].function_response
        assert response_part.name == "get_weather"
        assert response_part.response == {"output": {"temperature": -4}}
        assert second.text == "-4°C in Aspen."
        declared = client.client.models.calls[0]["config"].tools[0].function_declarations
        assert [d.name for d in declared] == ["get_weather"]

    def test_error_outputs_are_not_wrapped(self) -> None:
        client = make_client([call_response("get_weather", {"location": "Atlantis"}), text_response("Not found.")])

        first = client.respond(instructions="x", tools=[], user_text="Atlantis?")
        client.respond(
            instructions="x",
            tools=[],
            continuation_token=first.continuation_token,
            tool_outputs=[ToolOutput(call_id="c1", name="get_weather", output={"error": "not found"})],
        )

        part = client.client.models.calls[1]["contents"][-1].parts[0]
        assert part.function_response.response == {"error": "not found"}

    def test_unanswered_call_is_dropped_before_new_user_text(self) -> None:
        client = make_client([call_response("get_weather", {"location": "Aspen"}), text_response("Hello.")])

        first = client.respond(instructions="x", tools=[], user_text="Weather?")
        client.respond(instructions="x", tools=[], continuation_token=first.continuation_token, user_text="Never mind")

        contents = client.client.models.calls[1]["contents"]
        assert [c.role for c in contents] == ["user", "user"]

    def test_thread_cache_is_bounded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "PROVIDER_THREAD_CACHE_SIZE", 2)
        client = make_client([text_response(str(i)) for i in range(4)])

        oldest = client.respond(instructions="x", tools=[], user_text="a")
        client.respond(instructions="x", tools=[], user_text="b")
        client.respond(instructions="x", tools=[], user_text="c")
        client.respond(instructions="x", tools=[], continuation_token=oldest.continuation_token, user_text="d")

        assert len(client.client.models.calls[3]["contents"]) == 1

    def test_sdk_failure_becomes_provider_error(self) -> None:
        client = make_client([RuntimeError("503 unavailable")])

        with pytest.raises(ProviderError):
            client.respond(instructions="x", tools=[], user_text="Hi")

    def test_needs_some_input(self) -> None:
        with pytest.raises(ValueError):
            make_client([]).respond(instructions="x", tools=[])


class TestGenerateText:
    def test_returns_stripped_text(self) -> None:
        client = make_client([SimpleNamespace(text="  {\"ok\": true}\n")])

        assert client.generate_text("judge this") == '{"ok": true}'

    def test_empty_output_is_provider_error(self) -> None:
        with pytest.raises(ProviderError):
            make_client([SimpleNamespace(text="")]).generate_text("judge this")

    def test_sdk_failure_is_provider_error(self) -> None:
        with pytest.raises(ProviderError):
            make_client([RuntimeError("quota")]).generate_text("judge this")

    def test_empty_prompt_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            make_client([]).generate_text("  ")


def test_missing_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(ProviderError):
        GeminiClient()
