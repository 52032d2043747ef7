"""Protocol definitions for extensible components."""

from vaultrag.protocols.chunker import ChunkingStrategy
from vaultrag.protocols.embedder import EmbeddingProvider
from vaultrag.protocols.source import DocumentSource

__all__ = ["DocumentSource", "EmbeddingProvider", "ChunkingStrategy"]
