"""Text chunking strategies."""

from vaultrag.chunkers.sentence_chunker import SentenceChunker, validate_chunk_options

__all__ = ["SentenceChunker", "validate_chunk_options"]
