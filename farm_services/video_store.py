"""
video_store.py
==============
Resolve a user's uploaded drone videos to public object-storage URLs.

Objects live in a public bucket; a video's URL is
VIDEO_STORAGE_BASE_URL/<url-quoted object name>.
"""

from __future__ import annotations

import os
from typing import List, Optional
from urllib.parse import quote

from farm_services.profile_store import FarmProfile
from rag_pipeline.attachments import VideoAttachment

_DEFAULT_BASE_URL = "http://localhost:54321/storage/v1/object/public/videos"


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


class VideoStore:
    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or _clean_env("VIDEO_STORAGE_BASE_URL", _DEFAULT_BASE_URL)).rstrip("/")

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/{quote(name)}"

    def for_profile(self, profile: Optional[FarmProfile]) -> List[VideoAttachment]:
        """The profile's videos in upload order; none for a missing profile."""
        if profile is None:
            return []
        return [VideoAttachment(name=name, url=self.public_url(name)) for name in profile.videos]
