"""Core data models for chunks, embeddings and search results."""

import math
from dataclasses import dataclass, field

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate token count: one token per four characters, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass(frozen=True)
class EmbeddingVector:
    """A dense embedding with its declared dimensionality."""

    values: list[float]
    dimensions: int

    @classmethod
    def from_values(cls, values) -> "EmbeddingVector":
        floats = [float(v) for v in values]
        return cls(values=floats, dimensions=len(floats))

    def is_empty(self) -> bool:
        return self.dimensions == 0 or not self.values


@dataclass(frozen=True)
class TextChunk:
    """A slice of a document produced by a chunking strategy."""

    text: str
    chunk_index: int
    token_count: int
    start_offset: int
    end_offset: int


@dataclass
class ChunkRecord:
    """One indexed chunk of a source document."""

    source_id: str
    chunk_index: int
    text: str
    last_modified: int
    token_count: int
    embedding: EmbeddingVector = field(
        default_factory=lambda: EmbeddingVector(values=[], dimensions=0)
    )

    @property
    def key(self) -> tuple[str, int]:
        return (self.source_id, self.chunk_index)


@dataclass(frozen=True)
class RetrievalResult:
    """A chunk paired with its similarity to a query."""

    similarity: float
    record: ChunkRecord

    def format(self) -> str:
        return f'From "{self.record.source_id}":\n{self.record.text}'


@dataclass(frozen=True)
class IndexStats:
    total_files: int
    total_chunks: int
    is_built: bool
    provider: str
