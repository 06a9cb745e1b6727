from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from rag_pipeline.attachments import VideoAttachment
from rag_pipeline.embedder import Embedder
from rag_pipeline.llm_engine import GeminiClient
from rag_pipeline.retriever import ForumRetriever


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # Keep developer .env settings out of the tests
    for name in (
        "GEMINI_API_KEY", "GEMINI_MODEL", "EMBED_MODEL", "FORUM_MATCH_THRESHOLD",
        "MAX_VIDEO_ATTACHMENTS", "VIDEO_STORAGE_BASE_URL", "WEATHER_API_URL",
        "CHROMA_HOST", "FORUM_COLLECTION",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PROFILE_STORE_PATH", str(tmp_path / "profiles.json"))
    monkeypatch.setenv("CHROMA_PERSIST_DIR", str(tmp_path / "chroma"))


# ---------------------------------------------------------------------------
# Fakes for external services
# ---------------------------------------------------------------------------

class FakeModel:
    """Stands in for a SentenceTransformer: fixed-length unit vectors."""

    def __init__(self, dim: int = 384):
        self.dim = dim
        self.calls: List[List[str]] = []

    def encode(self, texts, **kwargs):
        self.calls.append(list(texts))
        vec = np.ones((len(texts), self.dim)) / np.sqrt(self.dim)
        return vec


class BrokenModel:
    def encode(self, texts, **kwargs):
        raise RuntimeError("onnx runtime crashed")


class FakeCollection:
    """Minimal chromadb collection: returns a preset best hit."""

    def __init__(self, document: Optional[str] = None, distance: float = 0.0, fail: bool = False):
        self.document = document
        self.distance = distance
        self.fail = fail
        self.queries: List[Dict[str, Any]] = []
        self.upserts: List[Dict[str, Any]] = []

    def count(self) -> int:
        if self.fail:
            raise ConnectionError("chroma unreachable")
        return 0 if self.document is None else 1

    def query(self, **kwargs):
        self.queries.append(kwargs)
        if self.fail:
            raise ConnectionError("chroma unreachable")
        if self.document is None:
            return {"documents": [[]], "distances": [[]]}
        return {"documents": [[self.document]], "distances": [[self.distance]]}

    def upsert(self, **kwargs):
        self.upserts.append(kwargs)


class DocumentlessCollection(FakeCollection):
    """A nearby row stored with an embedding but no document text."""

    def __init__(self, document: Optional[str] = None):
        super().__init__("placeholder", distance=0.05)
        self.missing = document

    def query(self, **kwargs):
        self.queries.append(kwargs)
        return {"documents": [[self.missing]], "distances": [[self.distance]]}


def make_genai_client(text: Optional[str] = "Irrigate early in the morning.", error: Optional[Exception] = None):
    client = MagicMock()
    if error is not None:
        client.aio.models.generate_content = AsyncMock(side_effect=error)
    else:
        client.aio.models.generate_content = AsyncMock(
            return_value=SimpleNamespace(text=text, prompt_feedback=None)
        )
    return client


class FakeFetcher:
    """Async video fetcher keyed by URL; missing URLs fail like a 404."""

    def __init__(self, payloads: Dict[str, bytes]):
        self.payloads = payloads
        self.requested: List[str] = []

    async def __call__(self, attachment: VideoAttachment) -> bytes:
        from rag_pipeline.errors import AttachmentFailure

        self.requested.append(attachment.url)
        if attachment.url not in self.payloads:
            raise AttachmentFailure(attachment.name, "fetch failed: 404")
        return self.payloads[attachment.url]


def videos(n: int) -> List[VideoAttachment]:
    return [VideoAttachment(name=f"field{i}.mp4", url=f"https://storage.test/field{i}.mp4") for i in range(n)]


@pytest.fixture
def embedder():
    return Embedder(model_name="fake", model=FakeModel())


@pytest.fixture
def genai_client():
    return make_genai_client()


@pytest.fixture
def generator(genai_client):
    return GeminiClient(api_key="test-key", client=genai_client)


@pytest.fixture
def empty_retriever():
    return ForumRetriever(FakeCollection())
