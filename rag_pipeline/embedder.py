"""
embedder.py
===========
Convert text strings into dense embedding vectors.

Model: thenlper/gte-small via sentence-transformers (384 dims, mean pooling),
loaded once per process and reused. Query vectors must come from the same
model that embedded the forum corpus.
"""

from __future__ import annotations

import asyncio
import logging
import os
from threading import Lock
from typing import Any, List, Optional

import numpy as np

from rag_pipeline.errors import EmbeddingFailure

logger = logging.getLogger(__name__)

DEFAULT_EMBED_MODEL = "thenlper/gte-small"


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


class Embedder:
    """
    Text → unit-normalised vector.

    The underlying SentenceTransformer is created lazily on first use (or
    eagerly through load() at startup) under a one-time lock. After that the
    model reference is only read.
    """

    def __init__(self, model_name: Optional[str] = None, model: Any = None):
        self.model_name = model_name or _clean_env("EMBED_MODEL", DEFAULT_EMBED_MODEL)
        self._model = model
        self._lock = Lock()

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def load(self) -> Any:
        """Load the model if needed and return it."""
        if self._model is None:
            with self._lock:
                if self._model is None:
                    try:
                        from sentence_transformers import SentenceTransformer  # type: ignore

                        self._model = SentenceTransformer(self.model_name)
                    except Exception as exc:
                        raise EmbeddingFailure(
                            f"could not load embedding model {self.model_name!r}: {exc}"
                        ) from exc
                    logger.info("Embedder backend: sentence_transformers (%s)", self.model_name)
        return self._model

    def embed(self, text: str) -> List[float]:
        """Return the embedding vector for a single text."""
        if not text or not text.strip():
            raise EmbeddingFailure("cannot embed empty text")

        model = self.load()
        try:
            vecs = model.encode(
                [text],
                batch_size=1,
                show_progress_bar=False,
                convert_to_numpy=True,
                normalize_embeddings=True,
            )
        except Exception as exc:
            raise EmbeddingFailure(f"embedding model failed: {exc}") from exc

        vec = np.asarray(vecs, dtype=float)
        if vec.ndim == 2:
            vec = vec[0] if len(vec) else np.empty(0)
        if vec.size == 0 or not np.all(np.isfinite(vec)):
            raise EmbeddingFailure("embedding model returned an empty or non-finite vector")
        return vec.tolist()

    def embed_texts(self, texts: List[str], batch_size: int = 32) -> List[List[float]]:
        """Batch variant used when indexing the forum corpus."""
        if not texts:
            return []
        if any(not t or not t.strip() for t in texts):
            raise EmbeddingFailure("cannot embed empty text")

        model = self.load()
        try:
            vecs = model.encode(
                texts,
                batch_size=batch_size,
                show_progress_bar=False,
                convert_to_numpy=True,
                normalize_embeddings=True,
            )
        except Exception as exc:
            raise EmbeddingFailure(f"embedding model failed: {exc}") from exc

        matrix = np.asarray(vecs, dtype=float)
        if matrix.ndim != 2 or matrix.shape[0] != len(texts) or not np.all(np.isfinite(matrix)):
            raise EmbeddingFailure("embedding model returned malformed vectors")
        return [row.tolist() for row in matrix]

    async def embed_async(self, text: str) -> List[float]:
        """Run embed() in a worker thread (model load and encode both block)."""
        return await asyncio.to_thread(self.embed, text)
