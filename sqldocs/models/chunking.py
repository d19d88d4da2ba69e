"""Chunking models: strategy selection, bounds, and the chunks produced."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChunkingStrategy(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """How a long document is split.

    Chosen by configuration per document class; there is no auto-detection.
    """

    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"
    FIXED = "fixed"
    MARKDOWN = "markdown"


class ChunkingOptions(BaseModel):
    """Bounds for :class:`~sqldocs.services.chunker.DocumentChunker`.

    Sizes are in characters.  ``overlap`` applies to the ``fixed`` strategy
    only.
    """

    model_config = ConfigDict(frozen=True)

    max_chunk_size: int = Field(default=1000, gt=0)
    min_chunk_size: int = Field(default=100, ge=0)
    overlap: int = Field(default=200, ge=0)
    strategy: ChunkingStrategy = ChunkingStrategy.PARAGRAPH

    @model_validator(mode="after")
    def _check_bounds(self) -> ChunkingOptions:
        if self.min_chunk_size > self.max_chunk_size:
            raise ValueError("min_chunk_size must not exceed max_chunk_size")
        if self.overlap >= self.max_chunk_size:
            raise ValueError("overlap must be smaller than max_chunk_size")
        return self


class TextChunk(BaseModel):
    """One ordered fragment of a larger document."""

    model_config = ConfigDict(frozen=True)

    text: str
    title: str
    chunk_index: int = Field(ge=0)
    total_chunks: int = Field(ge=1)
    # Offsets into the original text; ``text`` is that slice, stripped.
    start_char: int = Field(ge=0)
    end_char: int = Field(ge=0)
    header: str | None = Field(default=None, description="Markdown header of the section.")
