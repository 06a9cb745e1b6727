"""
main.py
=======
FastAPI application entry point for FarmFlight.

Run locally:
  uvicorn backend.main:app --reload --port 8000

The lifespan handler builds the expensive singletons (embedding model, forum
collection, profile store, HTTP-backed clients) once at startup and hangs
them on app.state so they are never re-created per request.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv  # type: ignore
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.chat import router as chat_router
from backend.api.health import router as health_router
from backend.api.profile import router as profile_router
from backend.api.videos import router as videos_router
from backend.api.weather import router as weather_router
from farm_services.profile_store import ProfileStore
from farm_services.video_store import VideoStore
from farm_services.weather_client import WeatherClient
from rag_pipeline.attachments import HttpVideoFetcher
from rag_pipeline.chat_pipeline import ChatPipeline
from rag_pipeline.embedder import Embedder
from rag_pipeline.errors import EmbeddingFailure
from rag_pipeline.llm_engine import GeminiClient
from rag_pipeline.retriever import ForumRetriever

# Load .env from project root (one level above this file's package)
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: startup / shutdown
# ---------------------------------------------------------------------------

def build_chat_pipeline() -> ChatPipeline:
    """Wire the chat pipeline; failures here degrade the assistant, never the app."""
    # 1. Embedding model, loaded once
    embedder = Embedder()
    try:
        embedder.load()
    except EmbeddingFailure as exc:
        logger.warning("Embedder not loaded at startup (%s); chat runs without forum context.", exc)

    # 2. Forum collection
    collection = None
    try:
        from rag_pipeline.chroma_client import collection_is_empty, get_collection
        collection = get_collection()
        if collection_is_empty():
            logger.warning(
                "Forum collection is empty; run `python -m rag_pipeline.forum_index --file <posts>` to index it."
            )
    except Exception as exc:
        logger.warning("Forum index unavailable: %s", exc)

    return ChatPipeline(
        embedder  = embedder,
        retriever = ForumRetriever(collection),
        generator = GeminiClient(),
        fetcher   = HttpVideoFetcher(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise singletons before first request."""
    logger.info("FarmFlight backend starting up…")

    app.state.chat_pipeline = build_chat_pipeline()
    app.state.profile_store = ProfileStore()
    app.state.video_store = VideoStore()
    app.state.weather_client = WeatherClient()

    if not app.state.chat_pipeline.generator.is_configured:
        logger.warning("GEMINI_API_KEY not set — chat requests will return the fallback message.")

    logger.info("All components initialised. Ready.")
    yield

    logger.info("FarmFlight backend shutting down.")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app() -> FastAPI:
    app = FastAPI(
        title       = "FarmFlight API",
        description = (
            "Farm management backend — onboarding profiles, weather, drone "
            "footage and a forum-grounded Gemini farming assistant."
        ),
        version     = "1.0.0",
        docs_url    = "/docs",
        redoc_url   = "/redoc",
        lifespan    = lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        os.getenv("FRONTEND_URL", "https://farmflight.vercel.app"),
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins     = origins,
        allow_credentials = True,
        allow_methods     = ["*"],
        allow_headers     = ["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────
    app.include_router(health_router)
    app.include_router(profile_router)
    app.include_router(weather_router)
    app.include_router(videos_router)
    app.include_router(chat_router)

    return app


app = create_app()
