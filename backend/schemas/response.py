"""
schemas/response.py
===================
Pydantic v2 models for the JSON the FarmFlight API returns.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

Number = Union[int, float]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

class ChatResponse(BaseModel):
    response: str
    forum_context_used: bool = False
    videos_attached: int = 0


# ---------------------------------------------------------------------------
# Profile / videos
# ---------------------------------------------------------------------------

class ProfileResponse(BaseModel):
    user_id: str
    first_name: str
    last_name: str
    city: str
    state: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    plot_size: Optional[Number] = None
    onboarding_complete: bool
    videos: List[str] = Field(default_factory=list)


class VideoInfo(BaseModel):
    name: str
    url: str


class VideoListUpdate(BaseModel):
    message: str
    videos: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

class CurrentWeather(BaseModel):
    temperature: Optional[Number] = None
    temperature_unit: Optional[str] = None
    condition: Optional[str] = None
    wind_speed: Optional[str] = None
    wind_direction: Optional[str] = None
    icon: Optional[str] = None
    name: Optional[str] = None
    detailed_forecast: Optional[str] = None


class ForecastPeriod(BaseModel):
    name: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    temperature: Optional[Number] = None
    temperature_unit: Optional[str] = None
    wind_speed: Optional[str] = None
    wind_direction: Optional[str] = None
    icon: Optional[str] = None
    short_forecast: Optional[str] = None
    detailed_forecast: Optional[str] = None
    is_daytime: Optional[bool] = None
    precipitation_probability: Number = 0


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "ok"
    embedder_loaded: bool
    forum_index_ready: bool
    forum_doc_count: int
    generation_configured: bool
    api_version: str


# ---------------------------------------------------------------------------
# Error response
# ---------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    timestamp: str = Field(default_factory=_utc_now)
