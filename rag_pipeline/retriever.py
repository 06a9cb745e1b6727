"""
retriever.py
============
Nearest-neighbour lookup of forum discussions for a query vector.

Strategy:
  1. Ask the forums collection for the single closest document
     (cosine space, n_results = MATCH_COUNT).
  2. Convert cosine distance to similarity (1 - distance).
  3. Keep the document only if similarity clears SIMILARITY_THRESHOLD.

Returns: Optional[ForumMatch]. Errors never propagate out of
find_best_match(); they are logged and reported as "no match".
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from rag_pipeline.errors import RetrievalFailure

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.7
MATCH_COUNT = 1


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


def _threshold_from_env() -> float:
    raw = _clean_env("FORUM_MATCH_THRESHOLD", "")
    if not raw:
        return SIMILARITY_THRESHOLD
    try:
        value = float(raw)
    except ValueError:
        value = None
    # cosine similarity lives in [-1, 1]
    if value is None or not math.isfinite(value) or not -1.0 <= value <= 1.0:
        logger.warning("Ignoring invalid FORUM_MATCH_THRESHOLD=%r; using %.2f.", raw, SIMILARITY_THRESHOLD)
        return SIMILARITY_THRESHOLD
    return value


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ForumMatch:
    text: str
    similarity: float   # used for thresholding only, never shown to the model


# ---------------------------------------------------------------------------
# Search client
# ---------------------------------------------------------------------------

class ForumRetriever:
    def __init__(
        self,
        collection: Any,
        threshold: Optional[float] = None,
        match_count: int = MATCH_COUNT,
    ):
        self.collection = collection
        self.threshold = _threshold_from_env() if threshold is None else threshold
        self.match_count = match_count

    def search(self, vector: Sequence[float]) -> Optional[ForumMatch]:
        """
        Query the store for the best match.

        Raises RetrievalFailure when the store call itself errors; returns
        None when nothing clears the threshold.
        """
        if self.collection is None:
            raise RetrievalFailure("forum collection unavailable")
        try:
            total = self.collection.count()
            if total == 0:
                logger.warning("Forum collection is empty — no retrieval context.")
                return None

            results = self.collection.query(
                query_embeddings = [list(vector)],
                n_results        = min(self.match_count, total),
                include          = ["documents", "distances"],
            )
        except Exception as exc:
            raise RetrievalFailure(f"forum similarity search failed: {exc}") from exc

        docs:      List[str]   = (results.get("documents") or [[]])[0] or []
        distances: List[float] = (results.get("distances") or [[]])[0] or []
        if not docs or not distances:
            logger.info("No similar forum content found.")
            return None

        similarity = 1.0 - float(distances[0])
        if similarity < self.threshold:
            logger.info(
                "Best forum match below threshold (%.3f < %.2f).", similarity, self.threshold
            )
            return None

        text = docs[0]
        if not isinstance(text, str) or not text.strip():
            logger.warning("Best forum match has no document text; skipping it.")
            return None

        logger.debug("Forum match found (similarity=%.3f).", similarity)
        return ForumMatch(text=text, similarity=similarity)

    def find_best_match(self, vector: Sequence[float]) -> Optional[ForumMatch]:
        """Like search(), but a failing store is reported as no match."""
        try:
            return self.search(vector)
        except RetrievalFailure as exc:
            logger.error("Forum retrieval failed: %s", exc)
            return None

    async def search_async(self, vector: Sequence[float]) -> Optional[ForumMatch]:
        return await asyncio.to_thread(self.search, vector)

    async def find_best_match_async(self, vector: Sequence[float]) -> Optional[ForumMatch]:
        return await asyncio.to_thread(self.find_best_match, vector)
