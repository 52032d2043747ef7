"""Data models for vaultrag."""

from vaultrag.models.chunk import (
    ChunkRecord,
    EmbeddingVector,
    IndexStats,
    RetrievalResult,
    TextChunk,
    estimate_tokens,
)
from vaultrag.models.document import ChangeEvent, ChangeKind, SourceDocument

__all__ = [
    "ChunkRecord",
    "EmbeddingVector",
    "IndexStats",
    "RetrievalResult",
    "TextChunk",
    "estimate_tokens",
    "ChangeEvent",
    "ChangeKind",
    "SourceDocument",
]
