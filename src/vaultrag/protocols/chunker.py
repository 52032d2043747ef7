"""Protocol for text chunking strategies."""

from typing import Protocol, runtime_checkable

from vaultrag.models import TextChunk


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for text chunking strategies.

    Implementations must be deterministic: the same text and parameters
    always yield the same chunks.
    """

    def chunk(self, text: str, chunk_size: int, overlap: int) -> list[TextChunk]:
        """Split text into chunks of roughly ``chunk_size`` tokens."""
        ...
