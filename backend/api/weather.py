"""
api/weather.py
==============
GET /api/weather?lat=&long=   — current conditions (first forecast period)
GET /api/forecast?lat=&long=  — up to 20 forecast periods for the dashboard chart
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from backend.api.deps import get_weather_client
from backend.schemas.response import CurrentWeather, ForecastPeriod
from farm_services.weather_client import WeatherClient, WeatherUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_coordinates(lat: Optional[str], long: Optional[str]) -> None:
    if not lat or not long:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Latitude and longitude are required parameters",
        )


@router.get("/api/weather", response_model=CurrentWeather)
async def current_weather(
    lat: Optional[str] = None,
    long: Optional[str] = None,
    client: WeatherClient = Depends(get_weather_client),
):
    _require_coordinates(lat, long)
    try:
        return CurrentWeather(**await client.current(lat, long))
    except WeatherUnavailableError as exc:
        logger.error("Error fetching weather data: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch weather data", "details": str(exc)},
        )


@router.get("/api/forecast", response_model=List[ForecastPeriod])
async def extended_forecast(
    lat: Optional[str] = None,
    long: Optional[str] = None,
    client: WeatherClient = Depends(get_weather_client),
):
    _require_coordinates(lat, long)
    try:
        periods = await client.forecast(lat, long)
    except WeatherUnavailableError as exc:
        logger.error("Error fetching extended forecast data: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch extended forecast data", "details": str(exc)},
        )
    return [ForecastPeriod(**p) for p in periods]
