"""
chroma_client.py
================
Initialise the vector-store client and expose the forums collection used by
the chat pipeline.

Backend selection:
  • CHROMA_HOST set → chromadb.HttpClient (shared remote store)
  • otherwise       → chromadb.PersistentClient at CHROMA_PERSIST_DIR
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import chromadb

logger = logging.getLogger(__name__)

_DEFAULT_COLLECTION = "forums"
_client: Optional[Any] = None
_collection: Optional[Any] = None


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


def collection_name() -> str:
    return _clean_env("FORUM_COLLECTION", _DEFAULT_COLLECTION) or _DEFAULT_COLLECTION


def _get_persist_dir() -> str:
    """Resolve the vector-store persistence directory from the environment."""
    path = _clean_env("CHROMA_PERSIST_DIR", "./chroma_db")
    Path(path).mkdir(parents=True, exist_ok=True)
    return path


def get_client() -> Any:
    """Return (or lazily create) the singleton vector-store client."""
    global _client
    if _client is None:
        host = _clean_env("CHROMA_HOST", "")
        if host:
            port = int(_clean_env("CHROMA_PORT", "8000") or "8000")
            _client = chromadb.HttpClient(host=host, port=port)
            logger.info("Vector store backend: chroma http (%s:%d)", host, port)
        else:
            persist_dir = _get_persist_dir()
            _client = chromadb.PersistentClient(path=persist_dir)
            logger.info("Vector store backend: chroma persistent (%s)", persist_dir)
    return _client


def get_collection() -> Any:
    """
    Return (or create) the forums collection.

    The collection is created with the cosine distance metric so that
    1 - distance is the cosine similarity the match threshold is expressed in.
    """
    global _collection
    if _collection is None:
        name = collection_name()
        _collection = get_client().get_or_create_collection(
            name     = name,
            metadata = {"hnsw:space": "cosine"},
        )
        logger.info(
            "Vector collection '%s' ready (%d documents).",
            name,
            _collection.count(),
        )
    return _collection


def collection_is_empty() -> bool:
    """Return True if the forums collection has no documents."""
    return get_collection().count() == 0


def reset_collection() -> Any:
    """Drop and recreate the forums collection, returning the new one."""
    global _collection
    name = collection_name()
    client = get_client()
    existing = {getattr(c, "name", c) for c in client.list_collections()}
    if name in existing:
        client.delete_collection(name)
    _collection = None
    logger.info("Collection '%s' reset.", name)
    return get_collection()
