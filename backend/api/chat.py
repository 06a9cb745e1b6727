"""
api/chat.py
===========
POST /api/chat
--------------
JSON body: {query, farm_context?, weather?}

  1. Resolve the caller's farm profile (X-User-Id, optional)
  2. Merge profile attributes with body-supplied farm / weather context
  3. Collect the profile's drone videos
  4. Run the chat pipeline (embed → retrieve → assemble → generate)

200 → ChatResponse; any terminal pipeline failure → 500 with the fixed
fallback message.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from backend.api.deps import (
    current_user_id, get_chat_pipeline, get_profile_store, get_video_store,
)
from backend.schemas.request import ChatRequest
from backend.schemas.response import ChatResponse, ErrorResponse
from farm_services.profile_store import ProfileStore
from farm_services.video_store import VideoStore
from rag_pipeline.chat_pipeline import ChatPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    user_id: Optional[str] = Depends(current_user_id),
    profiles: ProfileStore = Depends(get_profile_store),
    video_store: VideoStore = Depends(get_video_store),
    pipeline: ChatPipeline = Depends(get_chat_pipeline),
):
    """Answer one farmer question with forum, farm and video context."""
    profile = profiles.get(user_id) if user_id else None
    if profile is not None and not profile.onboarding_complete:
        profile = None

    farm_context: Dict[str, Any] = profile.farm_context() if profile else {}
    farm_context.update(body.context_overrides())
    videos = video_store.for_profile(profile)
    if videos:
        logger.info("Found %d videos to add as context", len(videos))

    outcome = await pipeline.answer(body.query, farm_context, videos)
    if not outcome.ok:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=outcome.text).model_dump(),
        )

    return ChatResponse(
        response           = outcome.text,
        forum_context_used = outcome.forum_context_used,
        videos_attached    = outcome.videos_attached,
    )
