"""
chat_pipeline.py
================
Per-query orchestration of the FarmFlight assistant.

  IDLE → EMBEDDING → RETRIEVING → ASSEMBLING → GENERATING → DONE
                                                         ↘ ERRORED

  • blank query            → IDLE jumps straight to ASSEMBLING
  • EmbeddingFailure       → EMBEDDING jumps to ASSEMBLING, no forum context
  • RetrievalFailure       → treated as "no match", continue to ASSEMBLING
  • GenerationFailure or
    any unexpected error   → ERRORED, fixed FALLBACK_MESSAGE

Each stage returns a StageResult so the degrade-vs-abort decision is made
here, in one place, for every transition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, List, Mapping, Optional, Sequence

from rag_pipeline.attachments import HttpVideoFetcher, VideoAttachment, VideoFetcher
from rag_pipeline.embedder import Embedder
from rag_pipeline.errors import PipelineError
from rag_pipeline.llm_engine import GeminiClient
from rag_pipeline.prompt_builder import SYSTEM_PROMPT, TextPart, build_content_parts, build_prompt
from rag_pipeline.retriever import ForumMatch, ForumRetriever

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Sorry, I encountered an error processing your request. Please try again."


class ChatState(str, Enum):
    IDLE       = "idle"
    EMBEDDING  = "embedding"
    RETRIEVING = "retrieving"
    ASSEMBLING = "assembling"
    GENERATING = "generating"
    DONE       = "done"
    ERRORED    = "errored"


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class StageResult:
    ok: bool
    value: Any = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: Any) -> "StageResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception) -> "StageResult":
        return cls(ok=False, error=error)


@dataclass
class ChatOutcome:
    text: str
    ok: bool
    state: ChatState
    trace: List[ChatState] = field(default_factory=list)
    forum_context_used: bool = False
    videos_attached: int = 0


async def _run_stage(step: Awaitable[Any]) -> StageResult:
    try:
        return StageResult.success(await step)
    except PipelineError as exc:
        return StageResult.failure(exc)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class ChatPipeline:
    def __init__(
        self,
        embedder: Embedder,
        retriever: ForumRetriever,
        generator: GeminiClient,
        fetcher: Optional[VideoFetcher] = None,
        max_attachments: Optional[int] = None,
        system_template: str = SYSTEM_PROMPT,
    ):
        self.embedder = embedder
        self.retriever = retriever
        self.generator = generator
        self.fetcher = fetcher or HttpVideoFetcher()
        self.max_attachments = max_attachments
        self.system_template = system_template

    async def _retrieve(self, query: str, trace: List[ChatState]) -> Optional[ForumMatch]:
        trace.append(ChatState.EMBEDDING)
        embedded = await _run_stage(self.embedder.embed_async(query))
        if not embedded.ok:
            logger.warning("Embedding failed (%s) — continuing without forum context.", embedded.error)
            return None

        trace.append(ChatState.RETRIEVING)
        retrieved = await _run_stage(self.retriever.search_async(embedded.value))
        if not retrieved.ok:
            logger.error("Forum retrieval failed (%s) — continuing without forum context.", retrieved.error)
            return None
        return retrieved.value

    async def answer(
        self,
        query: str,
        farm_context: Optional[Mapping[str, Any]] = None,
        videos: Sequence[VideoAttachment] = (),
    ) -> ChatOutcome:
        """Run one chat turn and return the answer (or the fallback message)."""
        trace: List[ChatState] = [ChatState.IDLE]
        try:
            match: Optional[ForumMatch] = None
            if query and query.strip():
                match = await self._retrieve(query, trace)

            trace.append(ChatState.ASSEMBLING)
            prompt = build_prompt(farm_context, query or "", match, system_template=self.system_template)
            parts = await build_content_parts(
                prompt, videos, self.fetcher, max_attachments=self.max_attachments,
            )
            videos_attached = sum(1 for part in parts if not isinstance(part, TextPart))

            trace.append(ChatState.GENERATING)
            generated = await _run_stage(self.generator.generate(parts))
            if not generated.ok:
                logger.error("Generation failed: %s", generated.error)
                trace.append(ChatState.ERRORED)
                return ChatOutcome(
                    text               = FALLBACK_MESSAGE,
                    ok                 = False,
                    state              = ChatState.ERRORED,
                    trace              = trace,
                    forum_context_used = match is not None,
                    videos_attached    = videos_attached,
                )

            trace.append(ChatState.DONE)
            return ChatOutcome(
                text               = generated.value,
                ok                 = True,
                state              = ChatState.DONE,
                trace              = trace,
                forum_context_used = match is not None,
                videos_attached    = videos_attached,
            )
        except Exception as exc:
            logger.error("Chat pipeline failed in state %s: %s", trace[-1].value, exc, exc_info=True)
            trace.append(ChatState.ERRORED)
            return ChatOutcome(text=FALLBACK_MESSAGE, ok=False, state=ChatState.ERRORED, trace=trace)
