"""
schemas/request.py
==================
Pydantic v2 models for request bodies accepted by the FarmFlight API.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Optional, Union

from pydantic import AfterValidator, BaseModel, Field

Number = Union[int, float]


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


RequiredText = Annotated[str, AfterValidator(_not_blank)]


class FarmContext(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    plot_size: Optional[Number] = None


class WeatherSnapshot(BaseModel):
    temperature: Optional[Number] = None
    temperature_unit: Optional[str] = None
    condition: Optional[str] = None
    humidity: Optional[Number] = None
    wind_speed: Optional[str] = None
    wind_direction: Optional[str] = None


class ChatRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=4000)
    farm_context: Optional[FarmContext] = None
    weather: Optional[WeatherSnapshot] = None

    def context_overrides(self) -> Dict[str, Any]:
        """Body-supplied farm and weather attributes, set fields only."""
        merged: Dict[str, Any] = {}
        if self.farm_context is not None:
            merged.update(self.farm_context.model_dump(exclude_none=True))
        if self.weather is not None:
            merged.update(self.weather.model_dump(exclude_none=True))
        return merged


class OnboardingRequest(BaseModel):
    first_name: RequiredText
    last_name: RequiredText
    city: RequiredText
    state: RequiredText
    country: RequiredText
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    plot_size: Optional[Number] = Field(None, ge=0, description="Total plot size in acres")


class AddVideoRequest(BaseModel):
    video_file_name: RequiredText
