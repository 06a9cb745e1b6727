"""
api/health.py
=============
GET /api/health — liveness and readiness probe for the FarmFlight backend.
"""

import logging

from fastapi import APIRouter, Request

from backend.schemas.response import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


@router.get("/api/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Return service status and component readiness flags."""
    pipeline = request.app.state.chat_pipeline

    forum_count = 0
    collection = pipeline.retriever.collection
    if collection is not None:
        try:
            forum_count = collection.count()
        except Exception as exc:
            logger.warning("Forum collection count failed: %s", exc)

    return HealthResponse(
        embedder_loaded       = pipeline.embedder.is_loaded,
        forum_index_ready     = forum_count > 0,
        forum_doc_count       = forum_count,
        generation_configured = pipeline.generator.is_configured,
        api_version           = API_VERSION,
    )
