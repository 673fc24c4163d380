# Role: Maps a capability name to its argument schema and executor. The orchestrator dispatches every
# model-requested call through here; dispatch never raises, it returns a structured result or error.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as SchemaError, field_validator

import travel_assistant.config as config
from travel_assistant.core.errors import CapabilityError
from travel_assistant.models.model_io import ToolDeclaration
from travel_assistant.tools.currency_client import CurrencyClient
from travel_assistant.tools.weather_client import WeatherClient


@dataclass(frozen=True)
class CapabilityResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None
    args: Optional[Dict[str, Any]] = None

    def payload(self) -> Dict[str, Any]:
        return dict(self.data) if self.ok else {"error": self.error}


class WeatherArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location: str = Field(
        min_length=1,
        description="The ski resort name or city/location (e.g., 'Chamonix', 'Aspen', 'Zermatt')",
    )
    units: Literal["celsius", "fahrenheit"] = Field(
        default="celsius",
        description="Temperature units preference",
    )

    @field_validator("location")
    @classmethod
    def _strip_location(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("location must be non-empty")
        return v


class CurrencyArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_ccy: str = Field(alias="from", description="Source currency code (e.g., 'USD', 'EUR', 'GBP')")
    to_ccy: str = Field(alias="to", description="Target currency code (e.g., 'EUR', 'CHF', 'CAD')")
    amount: Optional[float] = Field(
        default=None,
        gt=0,
        description="Amount to convert (optional, if not provided, just return the exchange rate)",
    )

    @field_validator("from_ccy", "to_ccy")
    @classmethod
    def _currency_code(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("currency codes are 3-letter ISO codes")
        return v


Executor = Callable[[BaseModel], CapabilityResult]


@dataclass(frozen=True)
class Capability:
    name: str
    description: str
    args_model: type
    executor: Executor

    def declaration(self) -> ToolDeclaration:
        schema = self.args_model.model_json_schema(by_alias=True)
        # Key line: titles are pydantic noise for the model; keep type/description/enum/required only.
        schema.pop("title", None)
        for prop in (schema.get("properties") or {}).values():
            prop.pop("title", None)
        return ToolDeclaration(name=self.name, description=self.description, parameters=schema)


class CapabilityRegistry:
    def __init__(self) -> None:
        self._capabilities: Dict[str, Capability] = {}

    def register(self, capability: Capability) -> None:
        if capability.name in self._capabilities:
            raise ValueError(f"Capability already registered: {capability.name}")
        self._capabilities[capability.name] = capability

    def names(self) -> List[str]:
        return list(self._capabilities)

    def declarations(self) -> List[ToolDeclaration]:
        return [c.declaration() for c in self._capabilities.values()]

    def dispatch(self, name: str, args: Optional[Dict[str, Any]]) -> CapabilityResult:
        # 1) Unknown name -> structured error
        # 2) Validate args against the capability schema -> structured error on failure
        # 3) Execute; any executor failure becomes a structured error (never raised past here)
        capability = self._capabilities.get(name)
        if capability is None:
            return CapabilityResult(ok=False, data={}, error=f"Unknown capability: {name}", args=args or {})

        raw_args = args if isinstance(args, dict) else {}
        try:
            parsed = capability.args_model.model_validate(raw_args)
        except SchemaError as e:
            return CapabilityResult(
                ok=False,
                data={},
                error=f"Invalid arguments for {name}: {self._format_schema_error(e)}",
                args=raw_args,
            )

        clean_args = parsed.model_dump(by_alias=True, exclude_none=True)

        try:
            result = capability.executor(parsed)
        except CapabilityError as e:
            result = CapabilityResult(ok=False, data={}, error=str(e))
        except Exception as e:
            # Key line: any other executor failure becomes this call's error payload.
            if config.DEBUG:
                print(f"[CAPABILITY] {name} raised {e!r}")
            result = CapabilityResult(ok=False, data={}, error=f"{name} failed: {e}")

        return CapabilityResult(ok=result.ok, data=result.data, error=result.error, args=clean_args)

    def _format_schema_error(self, error: SchemaError) -> str:
        parts = []
        for item in error.errors():
            loc = ".".join(str(p) for p in item.get("loc", ())) or "args"
            parts.append(f"{loc}: {item.get('msg')}")
        return "; ".join(parts)


def build_default_registry(
    weather_client: Optional[WeatherClient] = None,
    currency_client: Optional[CurrencyClient] = None,
) -> CapabilityRegistry:
    # Role: wire the travel capabilities (weather + currency) to their clients.
    weather = weather_client if weather_client is not None else WeatherClient()
    currency = currency_client if currency_client is not None else CurrencyClient()

    def run_weather(args: WeatherArgs) -> CapabilityResult:
        r = weather.get_weather(args.location, units=args.units)
        return CapabilityResult(ok=r.ok, data=r.data, error=r.error)

    def run_currency(args: CurrencyArgs) -> CapabilityResult:
        r = currency.convert(from_ccy=args.from_ccy, to_ccy=args.to_ccy, amount=args.amount)
        return CapabilityResult(ok=r.ok, data=r.data, error=r.error)

    registry = CapabilityRegistry()
    registry.register(
        Capability(
            name="get_weather",
            description=(
                "Get current weather conditions and 5-day forecast for a ski resort or location. "
                "Use this when users ask about weather, snow conditions, or current conditions at a resort."
            ),
            args_model=WeatherArgs,
            executor=run_weather,
        )
    )
    registry.register(
        Capability(
            name="convert_currency",
            description=(
                "Convert currency amounts for travel budgeting and cost comparisons. "
                "Use this when users ask about prices, costs, or budget conversions."
            ),
            args_model=CurrencyArgs,
            executor=run_currency,
        )
    )
    return registry
