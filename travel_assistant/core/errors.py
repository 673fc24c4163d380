# Role: Error taxonomy for a turn. Only ValidationError and ProviderError reach the HTTP boundary;
# CapabilityError is recorded inline on the invocation and ParseError is recovered inside the judge layer.

from __future__ import annotations


class ValidationError(ValueError):
    """Caller supplied an unusable turn (e.g., empty message). Maps to a 4xx, never retried."""


class CapabilityError(RuntimeError):
    """A single capability failed. The turn continues with an error payload for that call."""


class ProviderError(RuntimeError):
    """Model or judge service failure (network, quota, empty response)."""


class ParseError(ValueError):
    """Structured output from the judge could not be parsed."""
