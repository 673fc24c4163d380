# Role: External capability adapter for currency conversion. Calls Frankfurter API and returns a structured,
# JSON-safe result dict that the model and the detection engine treat as the numeric "source of truth".

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

import travel_assistant.config as config


@dataclass(frozen=True)
class CurrencyToolResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


class CurrencyClient:
    BASE_URL = "https://api.frankfurter.dev/v1"

    SUPPORTED_CURRENCIES = (
        "USD", "EUR", "GBP", "CHF", "CAD", "AUD", "JPY",
        "NOK", "SEK", "DKK", "NZD", "ISK",
    )

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        self._timeout = timeout_seconds

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else config.NETWORK_TIMEOUT_SECONDS

    def convert(self, *, from_ccy: str, to_ccy: str, amount: Optional[float] = None) -> CurrencyToolResult:
        # 1) Validate inputs (amount is optional: without it we only return the rate)
        # 2) Call /latest with base + symbols
        # 3) Extract rate and compute conversion
        # 4) Return normalized data for the model

        if amount is not None and amount <= 0:
            return CurrencyToolResult(ok=False, data={}, error="Amount must be > 0")
        if not from_ccy or not to_ccy:
            return CurrencyToolResult(ok=False, data={}, error="Missing currency codes")

        from_ccy = from_ccy.upper().strip()
        to_ccy = to_ccy.upper().strip()

        if from_ccy == to_ccy:
            return CurrencyToolResult(ok=True, data=self._build(from_ccy, to_ccy, 1.0, amount, None))

        params = {"base": from_ccy, "symbols": to_ccy}
        try:
            r = requests.get(f"{self.BASE_URL}/latest", params=params, timeout=self.timeout)
            if r.status_code == 404:
                # Key line: Frankfurter answers 404 for unknown base/symbol codes.
                return CurrencyToolResult(ok=False, data={}, error=f"Currency {from_ccy} or {to_ccy} not found")
            r.raise_for_status()
            payload = r.json()

            rates = payload.get("rates") or {}
            rate = rates.get(to_ccy)
            if rate is None:
                return CurrencyToolResult(ok=False, data={}, error=f"Currency {to_ccy} not found")

            data = self._build(from_ccy, to_ccy, float(rate), amount, payload.get("date"))

            if config.DEBUG:
                print("\n--- CURRENCY TOOL ---")
                print("REQUEST:", params, "amount:", amount)
                print("RESPONSE date/from/to/rate:", data.get("date"), data["from"], data["to"], data["rate"])
                print("---------------------\n")

            return CurrencyToolResult(ok=True, data=data)

        except requests.RequestException as e:
            return CurrencyToolResult(ok=False, data={}, error=f"Frankfurter request failed: {e}")
        except (TypeError, ValueError) as e:
            return CurrencyToolResult(ok=False, data={}, error=f"Bad Frankfurter payload: {e}")

    def _build(
        self,
        from_ccy: str,
        to_ccy: str,
        rate: float,
        amount: Optional[float],
        rate_date: Optional[str],
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {"from": from_ccy, "to": to_ccy, "rate": round(rate, 4)}
        if amount is not None:
            data["amount"] = float(amount)
            data["converted"] = round(float(amount) * rate, 2)
        if rate_date:
            data["date"] = rate_date
        return data
