"""Tests for the sentence-aware chunker."""

import math

import pytest

from vaultrag.chunkers import SentenceChunker
from vaultrag.errors import ConfigError

NOTE = (
    "# Weekly review\n\n"
    "The migration finished on Tuesday. Nobody noticed the downtime! "
    "Was the rollback plan ever tested? We should schedule a drill.\n\n"
    "- follow up with ops\n- update the runbook"
)


@pytest.fixture
def chunker():
    return SentenceChunker()


class TestValidation:
    @pytest.mark.parametrize(
        "chunk_size, overlap",
        [(0, 0), (-5, 0), (10, -1), (10, 10), (10, 25)],
    )
    def test_invalid_options_raise_config_error(self, chunker, chunk_size, overlap):
        with pytest.raises(ConfigError):
            chunker.chunk("Some text. More text.", chunk_size, overlap)

    def test_invalid_options_rejected_even_for_empty_text(self, chunker):
        with pytest.raises(ConfigError):
            chunker.chunk("", 0, 0)


class TestChunking:
    @pytest.mark.parametrize("text", ["", "   ", "\n\t  \n"])
    def test_blank_text_yields_nothing(self, chunker, text):
        assert chunker.chunk(text, 10, 2) == []

    def test_overlapping_chunks(self, chunker):
        chunks = chunker.chunk("One. Two. Three. Four.", 3, 1)

        assert len(chunks) >= 2
        assert chunks[0].text == "One. Two."
        assert chunks[1].text.startswith("Two.")
        assert chunks[0].text.endswith(chunks[1].text[:4])

    def test_zero_overlap_starts_fresh(self, chunker):
        chunks = chunker.chunk("One. Two. Three. Four.", 3, 0)

        assert [c.text for c in chunks] == ["One. Two.", "Three. Four."]

    def test_output_is_deterministic(self, chunker):
        first = chunker.chunk(NOTE, 12, 3)
        second = chunker.chunk(NOTE, 12, 3)

        assert first == second

    def test_offsets_slice_original_text(self, chunker):
        chunks = chunker.chunk(NOTE, 12, 3)

        assert len(chunks) > 1
        for chunk in chunks:
            assert NOTE[chunk.start_offset : chunk.end_offset] == chunk.text

    def test_indexes_and_token_counts(self, chunker):
        chunks = chunker.chunk(NOTE, 12, 3)

        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        for chunk in chunks:
            assert chunk.token_count == math.ceil(len(chunk.text) / 4)

    def test_text_without_terminator_is_one_chunk(self, chunker):
        chunks = chunker.chunk("  no punctuation in this note at all  ", 50, 5)

        assert len(chunks) == 1
        assert chunks[0].text == "no punctuation in this note at all"

    def test_trailing_fragment_is_kept(self, chunker):
        chunks = chunker.chunk("First sentence. trailing fragment", 50, 5)

        assert [c.text for c in chunks] == ["First sentence. trailing fragment"]

    def test_dots_inside_numbers_are_not_boundaries(self, chunker):
        chunks = chunker.chunk("Version 1.2.3 shipped. It works.", 6, 0)

        assert [c.text for c in chunks] == ["Version 1.2.3 shipped.", "It works."]

    def test_overlong_sentence_is_hard_split(self, chunker):
        text = "a" * 100
        chunks = chunker.chunk(text, 5, 0)

        assert len(chunks) == 5
        assert all(len(c.text) == 20 for c in chunks)
        assert "".join(c.text for c in chunks) == text

    def test_overlap_prefers_sentence_boundary(self, chunker):
        text = "Alpha beta gamma. Delta. Epsilon zeta eta theta."
        chunks = chunker.chunk(text, 7, 3)

        # The 12-char overlap window "amma. Delta." is trimmed to "Delta."
        assert chunks[1].text.startswith("Delta.")
