# Role: Prompt templates for the judge layers of the detection engine. The detailed judge checks every claim
# against the capability calls made during the turn; the common-sense judge is a cheap first pass.
# Both ask for a single JSON object with the same keys so one parser handles both.

from __future__ import annotations

from typing import List

from travel_assistant.models.invocation import CapabilityInvocation

JUDGE_PROMPT_VERSION = "judge/v3"
COMMON_SENSE_PROMPT_VERSION = "common-sense/v1"

_OUTPUT_CONTRACT = """
Return ONLY one JSON object (no markdown, no extra text):
{
  "isLikelyHallucination": true | false,
  "confidence": number between 0 and 1,
  "concerns": [string, ...],
  "severity": "trustworthy" | "questionable" | "likely_fabricated"
}
""".strip()


def describe_invocations(invocations: List[CapabilityInvocation]) -> str:
    # Role: the "which tools were called with what" context the judge compares claims against.
    if not invocations:
        return "No API calls were made."

    lines = ["API calls made:"]
    for inv in invocations:
        if inv.ok:
            lines.append(f"- {inv.describe()} returned {inv.payload()}")
        else:
            lines.append(f"- {inv.describe()}")
    return "\n".join(lines)


def build_judge_prompt(response: str, invocations: List[CapabilityInvocation]) -> str:
    return f"""
You are a strict fact-checking judge for a ski vacation planning assistant.
The assistant can only get real data from two tools: get_weather and convert_currency.

ASSISTANT RESPONSE:
\"\"\"{response}\"\"\"

TOOL CONTEXT:
{describe_invocations(invocations)}

CHECK FOR:
1) Weather figures (temperatures, snowfall, wind, conditions) not returned by get_weather.
2) Exchange rates or converted amounts not returned by convert_currency.
3) Contradictions between the response and the tool results.
4) Overly specific numbers without a source.
5) Vague or hedging language that suggests guessing.
General travel knowledge (resort descriptions, packing advice) is acceptable.

{_OUTPUT_CONTRACT}
""".strip()


def build_common_sense_prompt(response: str, invocations: List[CapabilityInvocation]) -> str:
    return f"""
Quickly sanity-check this travel assistant response for claims that break common sense
(e.g., heavy snow at +30°C, exchange rates off by orders of magnitude, impossible dates, or
confident real-time claims without any tool call).

RESPONSE:
\"\"\"{response}\"\"\"

TOOL CONTEXT:
{describe_invocations(invocations)}

{_OUTPUT_CONTRACT}
""".strip()
