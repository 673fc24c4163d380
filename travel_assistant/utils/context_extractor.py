# Role: Lightweight "memory" of trip details. Pulls ski level, budget, travel dates and the last resort/country
# out of a user message with keyword rules, so the conversation snapshot can show them without extra LLM calls.

from __future__ import annotations

import re
from typing import Dict

_SKI_LEVELS = (
    ("beginner", ("beginner",)),
    ("intermediate", ("intermediate",)),
    ("advanced", ("advanced", "expert")),
)

_BUDGET = re.compile(r"budget.*?(?:\$\d+|\d+\s*(?:dollar|euro|pound))", re.IGNORECASE)

_DATE_PATTERNS = (
    re.compile(
        r"in\s+(?:january|february|march|april|may|june|july|august|september|october|november|december)",
        re.IGNORECASE,
    ),
    re.compile(r"next\s+(?:week|month|year)", re.IGNORECASE),
    re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}"),
)

RESORTS = (
    "aspen", "vail", "whistler", "chamonix", "zermatt", "st. moritz",
    "cortina", "kitzbuhel", "verbier", "courchevel", "val d'isere",
    "st. anton", "davos", "park city", "breckenridge", "niseko",
)

COUNTRIES = (
    "switzerland", "france", "austria", "italy", "usa", "canada",
    "japan", "norway", "sweden",
)


def extract_context_updates(message: str) -> Dict[str, str]:
    # 1) Lowercase once; every rule is a keyword or regex match
    # 2) First matching level / date pattern / resort / country wins within one message
    content = (message or "").lower()
    updates: Dict[str, str] = {}

    for level, keywords in _SKI_LEVELS:
        if any(k in content for k in keywords):
            updates["ski_level"] = level
            break

    budget = _BUDGET.search(content)
    if budget:
        updates["budget"] = budget.group(0)

    for pattern in _DATE_PATTERNS:
        match = pattern.search(content)
        if match:
            updates["travel_dates"] = match.group(0)
            break

    resort = next((r for r in RESORTS if r in content), None)
    if resort:
        updates["last_mentioned_resort"] = resort

    country = next((c for c in COUNTRIES if c in content), None)
    if country:
        updates["last_mentioned_country"] = country

    return updates
