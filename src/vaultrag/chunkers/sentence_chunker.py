"""Sentence-aware chunking strategy."""

import re
from typing import Iterator

from vaultrag.errors import ConfigError
from vaultrag.models import TextChunk, estimate_tokens
from vaultrag.models.chunk import CHARS_PER_TOKEN

# Sentence terminators followed by whitespace or end of text
SENTENCE_END_RE = re.compile(r"[.!?]+(?=\s|$)")
# A terminator with text still following it inside an overlap window
INNER_BOUNDARY_RE = re.compile(r"[.!?]+\s+")


def validate_chunk_options(chunk_size: int, overlap: int) -> None:
    """Raise ConfigError unless 0 <= overlap < chunk_size."""
    if chunk_size <= 0:
        raise ConfigError("Chunk size must be positive")
    if overlap < 0:
        raise ConfigError("Overlap cannot be negative")
    if overlap >= chunk_size:
        raise ConfigError("Overlap must be less than chunk size")


class SentenceChunker:
    """Default chunking: greedy sentence packing under a token budget.

    Token counts are approximated as one token per four characters:
    - Sentences end at . ! ? followed by whitespace or end of text
    - Sentences are packed into a chunk until the next one would overflow
    - Each new chunk starts with an overlap suffix of the previous one
    - Sentences longer than the budget are hard-split

    Every chunk is a contiguous slice of the input, so offsets index the
    original text directly.
    """

    def chunk(self, text: str, chunk_size: int, overlap: int) -> list[TextChunk]:
        """Split text into overlapping chunks.

        Args:
            text: The text content to chunk
            chunk_size: Target chunk size in approximate tokens
            overlap: Tokens of the previous chunk repeated at the start of the next

        Returns:
            List of TextChunk objects in document order
        """
        validate_chunk_options(chunk_size, overlap)

        if not text or not text.strip():
            return []

        max_chars = chunk_size * CHARS_PER_TOKEN
        overlap_chars = overlap * CHARS_PER_TOKEN

        spans: list[tuple[int, int]] = []
        start = end = -1

        for sent_start, sent_end in self._sentence_spans(text, max_chars):
            if start < 0:
                start, end = sent_start, sent_end
                continue

            if sent_end - start > max_chars:
                spans.append((start, end))
                start = self._overlap_start(text, start, end, overlap_chars)
                if start >= end:
                    start = sent_start

            end = sent_end

        if start >= 0:
            spans.append((start, end))

        return [
            TextChunk(
                text=text[s:e],
                chunk_index=idx,
                token_count=estimate_tokens(text[s:e]),
                start_offset=s,
                end_offset=e,
            )
            for idx, (s, e) in enumerate(spans)
        ]

    def _sentence_spans(self, text: str, max_chars: int) -> Iterator[tuple[int, int]]:
        """Yield (start, end) offsets of each non-empty sentence."""
        pieces = []
        pos = 0
        for match in SENTENCE_END_RE.finditer(text):
            pieces.append((pos, match.end()))
            pos = match.end()
        pieces.append((pos, len(text)))

        for raw_start, raw_end in pieces:
            s, e = _trim(text, raw_start, raw_end)

            # Hard-split sentences that could never fit in one chunk
            while e - s > max_chars:
                piece_start, piece_end = _trim(text, s, s + max_chars)
                if piece_start < piece_end:
                    yield piece_start, piece_end
                s, e = _trim(text, s + max_chars, e)

            if s < e:
                yield s, e

    def _overlap_start(self, text: str, start: int, end: int, overlap_chars: int) -> int:
        """Offset where the overlap suffix of text[start:end] begins."""
        if overlap_chars == 0:
            return end
        if end - start <= overlap_chars:
            return start

        window_start = end - overlap_chars
        window = text[window_start:end]

        boundary = None
        for match in INNER_BOUNDARY_RE.finditer(window):
            if match.end() < len(window):
                boundary = match

        offset = window_start + boundary.end() if boundary else window_start
        while offset < end and text[offset].isspace():
            offset += 1
        return offset


def _trim(text: str, start: int, end: int) -> tuple[int, int]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end
