# Role: External capability adapter for weather. Calls Open-Meteo geocoding + forecast endpoints and returns
# current conditions plus a 5-day forecast for a ski resort or city, as a JSON-safe dict the model can cite.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

import travel_assistant.config as config
from travel_assistant.core.errors import CapabilityError

# WMO weather interpretation codes (https://open-meteo.com/en/docs).
_WEATHER_CODES = {
    0: "Clear",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Foggy",
    51: "Light Drizzle",
    53: "Drizzle",
    55: "Heavy Drizzle",
    61: "Light Rain",
    63: "Rain",
    65: "Heavy Rain",
    66: "Freezing Rain",
    67: "Heavy Freezing Rain",
    71: "Light Snow",
    73: "Snow",
    75: "Heavy Snow",
    77: "Snow Grains",
    80: "Light Showers",
    81: "Showers",
    82: "Heavy Showers",
    85: "Light Snow Showers",
    86: "Snow Showers",
    95: "Thunderstorm",
    96: "Thunderstorm with Hail",
    99: "Heavy Thunderstorm with Hail",
}


@dataclass(frozen=True)
class WeatherToolResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


def describe_weather_code(code: Any) -> str:
    try:
        return _WEATHER_CODES.get(int(code), "Unknown")
    except (TypeError, ValueError):
        return "Unknown"


def location_variations(location: str) -> List[str]:
    # Role: name-normalization retries for geocoding ("Val d’Isère", "Alpe d'Huez ski resort", ...).
    base = " ".join((location or "").split())
    variations = [
        base,
        base.replace("'", "’"),
        base.replace("’", "'"),
        re.sub(r"['’]", "", base),
        re.sub(r"['’]", "-", base),
        re.sub(r"\s+(ski\s+)?resort$", "", base, flags=re.IGNORECASE),
    ]
    # Key line: keep order, drop duplicates and empties.
    seen: List[str] = []
    for v in variations:
        v = v.strip()
        if v and v not in seen:
            seen.append(v)
    return seen


def summarize_ski_conditions(temperature: float, snowfall: float, wind_speed: float) -> str:
    # Role: short ski-oriented reading of current conditions (values in the requested units).
    if temperature < -10:
        summary = "Very cold - dress warmly. Good snow conditions."
    elif temperature < 0:
        summary = "Excellent skiing conditions with good snow quality."
    elif temperature < 5:
        summary = "Good conditions, though snow may be softer in afternoon."
    else:
        summary = "Warm conditions - snow may be slushy. Best skiing in morning."

    if snowfall > 10:
        summary += " Heavy fresh snowfall - powder conditions!"
    elif snowfall > 0:
        summary += " Fresh snow expected."

    if wind_speed > 30:
        summary += " WARNING: High winds - some lifts may be closed."

    return summary


class WeatherClient:
    GEO_URL = "https://geocoding-api.open-meteo.com/v1/search"
    FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
    FORECAST_DAYS = 7
    SUMMARY_DAYS = 5

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        self._timeout = timeout_seconds

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else config.NETWORK_TIMEOUT_SECONDS

    def get_weather(self, location: str, units: str = "celsius") -> WeatherToolResult:
        # 1) Validate location
        # 2) Geocode with name variations -> (lat, lon, name)
        # 3) Fetch current + daily forecast in the requested units
        # 4) Normalize to the capability contract (rounded numbers, readable conditions)

        if not location or not location.strip():
            return WeatherToolResult(ok=False, data={}, error="Missing location")

        fahrenheit = units == "fahrenheit"

        try:
            geo = self._geocode(location)

            params = {
                "latitude": geo["latitude"],
                "longitude": geo["longitude"],
                "current": "temperature_2m,weather_code,wind_speed_10m,snowfall",
                "daily": "temperature_2m_max,temperature_2m_min,weather_code,snowfall_sum",
                "temperature_unit": "fahrenheit" if fahrenheit else "celsius",
                "wind_speed_unit": "mph" if fahrenheit else "kmh",
                "forecast_days": self.FORECAST_DAYS,
                "timezone": "auto",
            }

            r = requests.get(self.FORECAST_URL, params=params, timeout=self.timeout)
            r.raise_for_status()
            payload = r.json()

            current = payload.get("current") or {}
            daily = payload.get("daily") or {}
            if current.get("temperature_2m") is None:
                return WeatherToolResult(ok=False, data={}, error="No current conditions returned")

            temperature = round(current["temperature_2m"])
            snowfall = round(current.get("snowfall") or 0)
            wind_speed = round(current.get("wind_speed_10m") or 0)

            data = {
                "location": geo["name"],
                "temperature": temperature,
                "condition": describe_weather_code(current.get("weather_code")),
                "snowfall": snowfall,
                "windSpeed": wind_speed,
                "forecast": self._forecast(daily),
                "units": "fahrenheit" if fahrenheit else "celsius",
                "skiConditions": summarize_ski_conditions(temperature, snowfall, wind_speed),
            }

            if config.DEBUG:
                print("\n--- WEATHER TOOL ---")
                print("REQUEST:", {"location": location, "units": units})
                print("RESOLVED:", geo["name"], geo["latitude"], geo["longitude"])
                print("RESPONSE temp/condition:", data["temperature"], data["condition"])
                print("--------------------\n")

            return WeatherToolResult(ok=True, data=data)

        except CapabilityError as e:
            return WeatherToolResult(ok=False, data={}, error=str(e))
        except requests.RequestException as e:
            return WeatherToolResult(ok=False, data={}, error=f"Open-Meteo request failed: {e}")
        except (KeyError, TypeError, ValueError) as e:
            return WeatherToolResult(ok=False, data={}, error=f"Bad Open-Meteo payload: {e}")

    def _forecast(self, daily: Dict[str, Any]) -> List[Dict[str, Any]]:
        times = daily.get("time") or []
        tmax = daily.get("temperature_2m_max") or []
        tmin = daily.get("temperature_2m_min") or []
        codes = daily.get("weather_code") or []
        snow = daily.get("snowfall_sum") or []

        out: List[Dict[str, Any]] = []
        for i, day in enumerate(times[: self.SUMMARY_DAYS]):
            out.append(
                {
                    "date": day,
                    "tempHigh": round(tmax[i]) if i < len(tmax) and tmax[i] is not None else None,
                    "tempLow": round(tmin[i]) if i < len(tmin) and tmin[i] is not None else None,
                    "snowfall": round((snow[i] if i < len(snow) else 0) or 0),
                    "condition": describe_weather_code(codes[i] if i < len(codes) else None),
                }
            )
        return out

    def _geocode(self, location: str) -> Dict[str, Any]:
        # Role: resolve name -> coordinates (single best result), trying normalized variations in order.
        tried = location_variations(location)
        for name in tried:
            params = {"name": name, "count": 1, "language": "en", "format": "json"}
            try:
                r = requests.get(self.GEO_URL, params=params, timeout=self.timeout)
                r.raise_for_status()
                results = (r.json() or {}).get("results") or []
            except (requests.RequestException, ValueError):
                # Key line: a failed variation is not fatal; move on to the next spelling.
                continue

            if results:
                if config.DEBUG:
                    print(f"[WEATHER_TOOL] geocoded {name!r} -> {results[0].get('name')}")
                return results[0]

        raise CapabilityError(f"Location '{location}' not found. Tried variations: {', '.join(tried)}")
