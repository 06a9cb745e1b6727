"""
attachments.py
==============
Fetch uploaded drone videos and turn them into inline content parts for the
generation request.

Only the first MAX_VIDEO_ATTACHMENTS videos are processed. Fetches run
concurrently; the returned parts keep the order the videos were given in.
A video that fails to fetch or encode is skipped, never fatal.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

import httpx

from rag_pipeline.errors import AttachmentFailure

logger = logging.getLogger(__name__)

MAX_VIDEO_ATTACHMENTS = 2
MAX_INLINE_VIDEO_BYTES = 20 * 1024 * 1024  # inline-data ceiling of the generation endpoint
DEFAULT_VIDEO_MIME = "video/mp4"


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


def attachment_cap() -> int:
    raw = _clean_env("MAX_VIDEO_ATTACHMENTS", "")
    if not raw:
        return MAX_VIDEO_ATTACHMENTS
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning("Ignoring invalid MAX_VIDEO_ATTACHMENTS=%r; using %d.", raw, MAX_VIDEO_ATTACHMENTS)
        return MAX_VIDEO_ATTACHMENTS


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VideoAttachment:
    name: str
    url: str


@dataclass(frozen=True)
class VideoPart:
    name: str
    mime_type: str
    data: str           # base64-encoded video bytes


VideoFetcher = Callable[[VideoAttachment], Awaitable[bytes]]


def guess_video_mime(name: str) -> str:
    mime, _ = mimetypes.guess_type(name)
    if mime and mime.startswith("video/"):
        return mime
    return DEFAULT_VIDEO_MIME


# ---------------------------------------------------------------------------
# HTTP fetcher (object storage public URLs)
# ---------------------------------------------------------------------------

class HttpVideoFetcher:
    """Download a video's bytes from its public storage URL."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        max_bytes: int = MAX_INLINE_VIDEO_BYTES,
    ):
        self._client = client
        self.timeout = timeout
        self.max_bytes = max_bytes

    async def __call__(self, attachment: VideoAttachment) -> bytes:
        logger.info("Downloading video %s from %s", attachment.name, attachment.url)
        try:
            if self._client is not None:
                return await self._download(self._client, attachment)
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                return await self._download(client, attachment)
        except httpx.HTTPError as exc:
            raise AttachmentFailure(attachment.name, f"fetch failed: {exc}") from exc

    async def _download(self, client: httpx.AsyncClient, attachment: VideoAttachment) -> bytes:
        async with client.stream("GET", attachment.url) as response:
            response.raise_for_status()

            declared = response.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > self.max_bytes:
                raise AttachmentFailure(
                    attachment.name,
                    f"video exceeds inline limit ({int(declared) / 1e6:.2f} MB)",
                )

            # Content-Length may be absent or wrong; count what actually arrives
            chunks: List[bytes] = []
            received = 0
            async for chunk in response.aiter_bytes():
                received += len(chunk)
                if received > self.max_bytes:
                    raise AttachmentFailure(
                        attachment.name,
                        f"video exceeds inline limit (over {self.max_bytes / 1e6:.2f} MB)",
                    )
                chunks.append(chunk)
        return b"".join(chunks)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def encode_video(attachment: VideoAttachment, data: bytes) -> VideoPart:
    if not data:
        raise AttachmentFailure(attachment.name, "empty video body")
    try:
        encoded = base64.b64encode(data).decode("ascii")
    except (TypeError, ValueError) as exc:
        raise AttachmentFailure(attachment.name, f"encode failed: {exc}") from exc
    return VideoPart(
        name      = attachment.name,
        mime_type = guess_video_mime(attachment.name),
        data      = encoded,
    )


async def _load_one(attachment: VideoAttachment, fetcher: VideoFetcher) -> Optional[VideoPart]:
    try:
        data = await fetcher(attachment)
        part = encode_video(attachment, data)
    except AttachmentFailure as exc:
        logger.warning("Skipping video attachment %s", exc)
        return None
    except Exception as exc:
        logger.error("Unexpected error processing video %s: %s", attachment.name, exc, exc_info=True)
        return None

    logger.info("Added video %s to context (%d base64 chars)", attachment.name, len(part.data))
    return part


async def load_video_parts(
    videos: Sequence[VideoAttachment],
    fetcher: VideoFetcher,
    limit: Optional[int] = None,
) -> List[VideoPart]:
    """Fetch and encode up to `limit` videos, preserving input order."""
    cap = attachment_cap() if limit is None else limit
    selected = list(videos)[:cap]
    if len(videos) > len(selected):
        logger.info("Processing %d of %d videos (cap=%d).", len(selected), len(videos), cap)
    if not selected:
        return []

    results = await asyncio.gather(*(_load_one(video, fetcher) for video in selected))
    return [part for part in results if part is not None]
