# Role: Wrapper around the Gemini API. Centralizes model name, temperature, timeout, and error handling.
# generate_text(prompt) serves single-shot calls (judge layers); respond(...) serves the tool-calling turn loop.
# Gemini keeps no server-side conversation state, so this adapter issues the continuation tokens itself:
# each token names a stored conversation thread, and every call returns a fresh token for the extended thread.

from __future__ import annotations

import os
import threading
import uuid
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

import travel_assistant.config as config
from travel_assistant.core.errors import ProviderError
from travel_assistant.models.model_io import ModelReply, ToolDeclaration, ToolOutput, ToolRequest

_JSON_TYPES = {
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
    "array": "ARRAY",
    "object": "OBJECT",
}


def to_gemini_schema(schema: Dict[str, Any]) -> types.Schema:
    # Role: translate the JSON schema pydantic emits into Gemini's Schema (Optional -> nullable, Literal -> enum).
    nullable = False
    node = schema
    if "anyOf" in node:
        branches = [b for b in node["anyOf"] if b.get("type") != "null"]
        nullable = len(branches) < len(node["anyOf"])
        merged = dict(branches[0]) if branches else {}
        for key in ("description", "default"):
            if key in node:
                merged.setdefault(key, node[key])
        node = merged

    kwargs: Dict[str, Any] = {}
    json_type = node.get("type")
    if json_type is None and "enum" in node:
        json_type = "string"
    if json_type:
        kwargs["type"] = _JSON_TYPES.get(json_type, "STRING")
    if node.get("description"):
        kwargs["description"] = node["description"]
    if node.get("enum"):
        kwargs["enum"] = [str(v) for v in node["enum"]]
    if node.get("properties"):
        kwargs["properties"] = {k: to_gemini_schema(v) for k, v in node["properties"].items()}
    if node.get("required"):
        kwargs["required"] = list(node["required"])
    if node.get("items"):
        kwargs["items"] = to_gemini_schema(node["items"])
    if nullable:
        kwargs["nullable"] = True
    return types.Schema(**kwargs)


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.3,
        timeout_seconds: Optional[float] = None,
        client: Optional[Any] = None,
    ) -> None:
        # Key lines:
        # - Reads secrets from env (no secrets in code).
        # - Model, temperature and timeout are configurable; `client` lets tests inject a fake SDK client.
        self.model_name = model or os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.temperature = temperature

        if client is not None:
            self.client = client
        else:
            self.api_key = api_key or os.getenv("GEMINI_API_KEY")
            if not self.api_key:
                raise ProviderError("Missing GEMINI_API_KEY in environment or .env")
            timeout = timeout_seconds if timeout_seconds is not None else config.NETWORK_TIMEOUT_SECONDS
            self.client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(timeout * 1000)),
            )

        self._threads: "OrderedDict[str, List[types.Content]]" = OrderedDict()
        self._threads_lock = threading.Lock()

    def generate_text(self, prompt: str) -> str:
        # 1) Validate prompt
        # 2) Call Gemini (single text completion)
        # 3) Validate non-empty response
        if not prompt or not prompt.strip():
            raise ValueError("Prompt must be non-empty.")

        try:
            resp = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config={"temperature": self.temperature},
            )
        except Exception as e:
            raise ProviderError(f"Gemini API call failed: {e}") from e

        text = getattr(resp, "text", None)
        if not text:
            raise ProviderError("Gemini returned an empty response.")

        return text.strip()

    def respond(
        self,
        *,
        instructions: str,
        tools: List[ToolDeclaration],
        continuation_token: Optional[str] = None,
        user_text: Optional[str] = None,
        tool_outputs: Optional[List[ToolOutput]] = None,
    ) -> ModelReply:
        # 1) Restore the thread behind the token (unknown/expired token -> fresh thread)
        # 2) Append the new input (user text or tool results)
        # 3) Call Gemini with system instructions + tool declarations
        # 4) Store the extended thread under a new token; return text + tool requests
        if not user_text and not tool_outputs:
            raise ValueError("respond() needs user_text or tool_outputs.")

        history = self._load_thread(continuation_token)

        if user_text:
            history = self._drop_dangling_calls(history)
            history.append(types.Content(role="user", parts=[types.Part.from_text(text=user_text)]))
        else:
            parts = [
                types.Part.from_function_response(name=o.name, response=self._wrap_output(o.output))
                for o in tool_outputs or []
            ]
            history.append(types.Content(role="user", parts=parts))

        gen_config = types.GenerateContentConfig(
            system_instruction=instructions,
            temperature=self.temperature,
            tools=[types.Tool(function_declarations=[self._declaration(t) for t in tools])] if tools else None,
        )

        try:
            resp = self.client.models.generate_content(
                model=self.model_name,
                contents=history,
                config=gen_config,
            )
        except Exception as e:
            raise ProviderError(f"Gemini API call failed: {e}") from e

        content = self._first_content(resp)
        if content is not None:
            history.append(content)

        requests_ = [
            ToolRequest(call_id=getattr(fc, "id", None), name=fc.name, args=dict(fc.args or {}))
            for fc in (getattr(resp, "function_calls", None) or [])
        ]
        text = self._text_of(content)

        token = self._store_thread(history, replaces=continuation_token)

        if config.DEBUG:
            print("\n--- GEMINI RESPOND ---")
            print("CONTINUATION:", continuation_token, "->", token)
            print("TOOL REQUESTS:", [(r.name, r.args) for r in requests_])
            print("TEXT (preview):", text[:300])
            print("----------------------\n")

        return ModelReply(text=text, tool_requests=requests_, continuation_token=token)

    def _declaration(self, tool: ToolDeclaration) -> types.FunctionDeclaration:
        return types.FunctionDeclaration(
            name=tool.name,
            description=tool.description,
            parameters=to_gemini_schema(tool.parameters),
        )

    def _wrap_output(self, output: Dict[str, Any]) -> Dict[str, Any]:
        # Key line: Gemini expects {"output": ...} for results and {"error": ...} for failures.
        if "error" in output and len(output) == 1:
            return output
        return {"output": output}

    def _first_content(self, resp: Any) -> Optional[types.Content]:
        candidates = getattr(resp, "candidates", None) or []
        if not candidates:
            return None
        return getattr(candidates[0], "content", None)

    def _text_of(self, content: Optional[types.Content]) -> str:
        if content is None:
            return ""
        chunks = [p.text for p in (content.parts or []) if getattr(p, "text", None)]
        return "".join(chunks).strip()

    def _drop_dangling_calls(self, history: List[types.Content]) -> List[types.Content]:
        # Role: a capped turn can end on a model function_call with no response; Gemini rejects a new user
        # message after it, so the unanswered call is dropped before continuing the thread.
        if history and history[-1].role == "model":
            parts = history[-1].parts or []
            if any(getattr(p, "function_call", None) for p in parts):
                return history[:-1]
        return history

    def _load_thread(self, token: Optional[str]) -> List[types.Content]:
        if not token:
            return []
        with self._threads_lock:
            thread = self._threads.get(token)
        if thread is None:
            if config.DEBUG:
                print(f"[GEMINI] unknown continuation token {token}; starting a fresh thread")
            return []
        return list(thread)

    def _store_thread(self, history: List[types.Content], replaces: Optional[str]) -> str:
        token = f"gemini-{uuid.uuid4().hex}"
        with self._threads_lock:
            if replaces:
                self._threads.pop(replaces, None)
            self._threads[token] = history
            # Key line: bounded memory; oldest threads are evicted first.
            while len(self._threads) > config.PROVIDER_THREAD_CACHE_SIZE:
                self._threads.popitem(last=False)
        return token
