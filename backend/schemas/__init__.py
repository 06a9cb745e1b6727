# backend/schemas/__init__.py
from backend.schemas.request import (
    AddVideoRequest,
    ChatRequest,
    FarmContext,
    OnboardingRequest,
    WeatherSnapshot,
)
from backend.schemas.response import (
    ChatResponse,
    CurrentWeather,
    ErrorResponse,
    ForecastPeriod,
    HealthResponse,
    ProfileResponse,
    VideoInfo,
    VideoListUpdate,
)

__all__ = [
    "AddVideoRequest", "ChatRequest", "FarmContext", "OnboardingRequest",
    "WeatherSnapshot", "ChatResponse", "CurrentWeather", "ErrorResponse",
    "ForecastPeriod", "HealthResponse", "ProfileResponse", "VideoInfo",
    "VideoListUpdate",
]
