"""
errors.py
=========
Failure taxonomy for the chat pipeline.

Only GenerationFailure is terminal for a chat turn; the others are absorbed
by the orchestrator as "less context".
"""


class PipelineError(RuntimeError):
    """Base class for every chat-pipeline stage failure."""


class EmbeddingFailure(PipelineError):
    """The embedding model could not be loaded or produced no usable vector."""


class RetrievalFailure(PipelineError):
    """The forum similarity search errored."""


class AttachmentFailure(PipelineError):
    """A single video attachment could not be fetched or encoded."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"{name}: {reason}")
        self.name = name
        self.reason = reason


class GenerationFailure(PipelineError):
    """The generative model call failed or returned an unusable result."""
