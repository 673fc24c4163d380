# Role: Defensive parsing of "single JSON object" LLM output. Models sometimes wrap JSON in code fences or add
# extra text around it; these helpers repair the common violations and coerce fields to safe types.

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Tuple


def strip_code_fences(text: str) -> str:
    # Role: remove markdown fences if model incorrectly wrapped JSON.
    if not text:
        return ""
    t = text.strip()

    if t.startswith("```"):
        t = re.sub(r"^\s*```(?:json)?\s*", "", t, flags=re.IGNORECASE)
        t = re.sub(r"\s*```\s*$", "", t)
    return t.strip()


def try_parse_json_object(text: str) -> Tuple[Optional[Dict[str, Any]], Dict[str, Any]]:
    # 1) strict json.loads
    # 2) strip code fences
    # 3) extract {...} substring as last attempt
    raw = (text or "").strip()

    try:
        parsed = json.loads(raw)
        return _as_object(parsed), {"repaired": False, "method": "strict"}
    except json.JSONDecodeError:
        pass

    cleaned = strip_code_fences(raw)
    if cleaned != raw:
        try:
            return _as_object(json.loads(cleaned)), {"repaired": True, "method": "stripped_fences"}
        except json.JSONDecodeError:
            pass

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end != -1 and end > start:
        candidate = cleaned[start : end + 1]
        try:
            return _as_object(json.loads(candidate)), {"repaired": True, "method": "extracted_braces"}
        except json.JSONDecodeError:
            return None, {"repaired": True, "method": "failed"}

    return None, {"repaired": False, "method": "failed"}


def _as_object(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def parse_confidence(value: Any) -> float:
    try:
        c = float(value)
    except (TypeError, ValueError):
        return 0.0
    if c != c:  # NaN
        return 0.0
    return min(max(c, 0.0), 1.0)


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return False


def parse_list_of_strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    out: List[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            out.append(item.strip())
    return out
