"""
api/deps.py
===========
Request-scoped dependencies: service lookup on app.state, caller identity and
the onboarding gate.

Identity comes from the upstream auth gateway, which authenticates the
session and forwards the user id in the X-User-Id header.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from farm_services.profile_store import FarmProfile, ProfileStore
from farm_services.video_store import VideoStore
from farm_services.weather_client import WeatherClient
from rag_pipeline.chat_pipeline import ChatPipeline


def get_profile_store(request: Request) -> ProfileStore:
    return request.app.state.profile_store


def get_video_store(request: Request) -> VideoStore:
    return request.app.state.video_store


def get_weather_client(request: Request) -> WeatherClient:
    return request.app.state.weather_client


def get_chat_pipeline(request: Request) -> ChatPipeline:
    return request.app.state.chat_pipeline


def current_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Caller's user id, or None for an anonymous request."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def require_user_id(user_id: Optional[str] = Depends(current_user_id)) -> str:
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User authentication failed",
        )
    return user_id


def require_onboarded_profile(
    user_id: str = Depends(require_user_id),
    store: ProfileStore = Depends(get_profile_store),
) -> FarmProfile:
    """Profile gate: the caller must have finished onboarding."""
    profile = store.get(user_id)
    if profile is None or not profile.onboarding_complete:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Onboarding required",
        )
    return profile
