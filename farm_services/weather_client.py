"""
weather_client.py
=================
Current conditions and extended forecast for a farm's coordinates.

Upstream: WEATHER_API_URL?lat=<lat>&long=<long> returning
{"periods": [{name, startTime, endTime, temperature, temperatureUnit,
windSpeed, windDirection, icon, shortForecast, detailedForecast,
isDaytime, probabilityOfPrecipitation: {value}}, ...]}
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_WEATHER_API_URL = "https://wh25-weatherapi.onrender.com/forecast"
MAX_FORECAST_PERIODS = 20


class WeatherUnavailableError(RuntimeError):
    """Raised when the upstream forecast service fails or has no periods."""


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


def _current_from_period(period: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "temperature":       period.get("temperature"),
        "temperature_unit":  period.get("temperatureUnit"),
        "condition":         period.get("shortForecast"),
        "wind_speed":        period.get("windSpeed"),
        "wind_direction":    period.get("windDirection"),
        "icon":              period.get("icon"),
        "name":              period.get("name"),
        "detailed_forecast": period.get("detailedForecast"),
    }


def _forecast_from_period(period: Dict[str, Any]) -> Dict[str, Any]:
    precipitation = period.get("probabilityOfPrecipitation")
    if isinstance(precipitation, dict):
        precipitation = precipitation.get("value")
    if isinstance(precipitation, bool) or not isinstance(precipitation, (int, float)):
        precipitation = 0
    return {
        "name":                      period.get("name"),
        "start_time":                period.get("startTime"),
        "end_time":                  period.get("endTime"),
        "temperature":               period.get("temperature"),
        "temperature_unit":          period.get("temperatureUnit"),
        "wind_speed":                period.get("windSpeed"),
        "wind_direction":            period.get("windDirection"),
        "icon":                      period.get("icon"),
        "short_forecast":            period.get("shortForecast"),
        "detailed_forecast":         period.get("detailedForecast"),
        "is_daytime":                period.get("isDaytime"),
        "precipitation_probability": precipitation,
    }


class WeatherClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url or _clean_env("WEATHER_API_URL", _DEFAULT_WEATHER_API_URL)
        self._client = client
        self.timeout = timeout

    async def _periods(self, lat: str, long: str) -> List[Dict[str, Any]]:
        params = {"lat": lat, "long": long}
        try:
            if self._client is not None:
                response = await self._client.get(self.base_url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.base_url, params=params)
        except httpx.HTTPError as exc:
            raise WeatherUnavailableError(f"weather API request failed: {exc}") from exc

        if response.status_code >= 400:
            raise WeatherUnavailableError(
                f"External weather API responded with status: {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise WeatherUnavailableError("weather API returned invalid JSON") from exc

        periods = payload.get("periods") if isinstance(payload, dict) else None
        if not periods:
            raise WeatherUnavailableError("No forecast periods found in the weather data")
        return periods

    async def current(self, lat: str, long: str) -> Dict[str, Any]:
        """Conditions for the first forecast period."""
        periods = await self._periods(lat, long)
        return _current_from_period(periods[0])

    async def forecast(self, lat: str, long: str) -> List[Dict[str, Any]]:
        """Up to MAX_FORECAST_PERIODS periods, in upstream order."""
        periods = await self._periods(lat, long)
        logger.debug("Forecast returned %d periods for (%s, %s).", len(periods), lat, long)
        return [_forecast_from_period(p) for p in periods[:MAX_FORECAST_PERIODS]]
