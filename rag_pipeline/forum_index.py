"""
forum_index.py
==============
Load forum discussions into the vector store so the chat pipeline can match
against them.

Input: JSON array or JSON-lines file of posts, each an object with the forum
text under "forums" (or "text") and an optional "id".

Run:
  python -m rag_pipeline.forum_index --file forums.jsonl [--reset]
"""

from __future__ import annotations

import argparse
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from rag_pipeline.embedder import Embedder

logger = logging.getLogger(__name__)

_BATCH_SIZE = 64


def _post_text(post: Dict[str, Any]) -> str:
    return str(post.get("forums") or post.get("text") or "").strip()


def _post_id(post: Dict[str, Any], text: str) -> str:
    if post.get("id") not in (None, ""):
        return str(post["id"])
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:32]


def load_posts(path: str) -> List[Dict[str, Any]]:
    raw = Path(path).read_text(encoding="utf-8").strip()
    if not raw:
        return []
    if raw.startswith("["):
        return json.loads(raw)
    return [json.loads(line) for line in raw.splitlines() if line.strip()]


def index_forum_posts(
    posts: Iterable[Dict[str, Any]],
    embedder: Embedder,
    collection: Any,
) -> int:
    """Embed and upsert forum posts; returns the number indexed. Blank posts are skipped."""
    ids: List[str] = []
    texts: List[str] = []
    for post in posts:
        text = _post_text(post)
        if not text:
            continue
        ids.append(_post_id(post, text))
        texts.append(text)

    for start in range(0, len(texts), _BATCH_SIZE):
        batch_ids = ids[start:start + _BATCH_SIZE]
        batch_texts = texts[start:start + _BATCH_SIZE]
        collection.upsert(
            ids        = batch_ids,
            embeddings = embedder.embed_texts(batch_texts),
            documents  = batch_texts,
            metadatas  = [{"source": "forum"} for _ in batch_ids],
        )
        logger.info("Indexed forum posts %d–%d.", start + 1, start + len(batch_ids))

    return len(texts)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    from dotenv import load_dotenv  # type: ignore

    from rag_pipeline.chroma_client import get_collection, reset_collection

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    parser = argparse.ArgumentParser(description="Index forum discussions for FarmFlight chat")
    parser.add_argument("--file",  required=True, help="JSON / JSON-lines file of forum posts")
    parser.add_argument("--reset", action="store_true", help="Drop the collection first")
    args = parser.parse_args()

    target = reset_collection() if args.reset else get_collection()
    count = index_forum_posts(load_posts(args.file), Embedder(), target)
    logger.info("Indexed %d forum posts (collection now holds %d).", count, target.count())
