"""
api/profile.py
==============
POST /api/onboarding — store the onboarding form as the caller's farm profile
GET  /api/profile    — return the caller's farm profile
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from backend.api.deps import get_profile_store, require_user_id
from backend.schemas.request import OnboardingRequest
from backend.schemas.response import ProfileResponse
from farm_services.profile_store import FarmProfile, ProfileExistsError, ProfileStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/api/onboarding",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
)
async def complete_onboarding(
    form: OnboardingRequest,
    user_id: str = Depends(require_user_id),
    store: ProfileStore = Depends(get_profile_store),
):
    """Create the caller's farm profile and mark onboarding complete."""
    profile = FarmProfile(user_id=user_id, **form.model_dump())
    try:
        saved = store.create(profile)
    except ProfileExistsError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Onboarding already complete",
        )
    return ProfileResponse(**asdict(saved))


@router.get("/api/profile", response_model=ProfileResponse)
async def get_profile(
    user_id: str = Depends(require_user_id),
    store: ProfileStore = Depends(get_profile_store),
):
    profile = store.get(user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return ProfileResponse(**asdict(profile))
