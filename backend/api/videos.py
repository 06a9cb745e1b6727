"""
api/videos.py
=============
Drone footage attached to the caller's farm profile.

GET    /api/videos         — [{name, url}] in upload order
POST   /api/videos         — {video_file_name}: record an uploaded video
DELETE /api/videos/{name}  — forget a video

The upload itself goes straight to object storage; these endpoints only
maintain which stored objects belong to the caller. All require a completed
onboarding.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from backend.api.deps import get_profile_store, get_video_store, require_onboarded_profile
from backend.schemas.request import AddVideoRequest
from backend.schemas.response import VideoInfo, VideoListUpdate
from farm_services.profile_store import FarmProfile, ProfileStore, VideoNotFoundError
from farm_services.video_store import VideoStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/videos", response_model=List[VideoInfo])
async def list_videos(
    profile: FarmProfile = Depends(require_onboarded_profile),
    video_store: VideoStore = Depends(get_video_store),
):
    return [VideoInfo(name=v.name, url=v.url) for v in video_store.for_profile(profile)]


@router.post("/api/videos", response_model=VideoListUpdate)
async def add_video(
    body: AddVideoRequest,
    profile: FarmProfile = Depends(require_onboarded_profile),
    store: ProfileStore = Depends(get_profile_store),
):
    videos = store.add_video(profile.user_id, body.video_file_name)
    return VideoListUpdate(message="Video added to user profile successfully", videos=videos)


@router.delete("/api/videos/{name}", response_model=VideoListUpdate)
async def delete_video(
    name: str,
    profile: FarmProfile = Depends(require_onboarded_profile),
    store: ProfileStore = Depends(get_profile_store),
):
    try:
        videos = store.remove_video(profile.user_id, name)
    except VideoNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Video {name} not found")
    return VideoListUpdate(message="Video removed successfully", videos=videos)
