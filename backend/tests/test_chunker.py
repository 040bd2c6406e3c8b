"""
Unit tests for the text chunker.
"""
import pytest

from services.processing.chunker import SplitStrategy, TextChunker, split_text


def numbered_text(count: int) -> str:
    return " ".join(f"Sentence number {i:03d} is here." for i in range(count))


class TestBoundaryStrategy:
    """Test sentence-aware chunking."""

    def test_chunks_respect_length_bounds(self):
        chunks = split_text(numbered_text(40), max_length=200, min_length=50)

        assert len(chunks) > 1
        assert all(chunk.length <= 200 for chunk in chunks)
        assert all(chunk.length >= 50 for chunk in chunks[:-1])

    def test_chunks_are_exact_slices(self):
        text = numbered_text(40)
        for chunk in split_text(text, max_length=200, min_length=50):
            assert text[chunk.start_index:chunk.end_index] == chunk.text
            assert chunk.length == chunk.end_index - chunk.start_index

    def test_chunks_cover_whole_text(self):
        text = numbered_text(40)
        chunks = split_text(text, max_length=200, min_length=50)

        assert " ".join(chunk.text for chunk in chunks) == text

    def test_chunks_end_on_sentence_boundaries(self):
        chunks = split_text(numbered_text(40), max_length=200, min_length=50)

        assert all(chunk.text.endswith(".") for chunk in chunks)

    def test_oversized_unit_is_force_split_on_words(self):
        text = "Short intro here. " + "word " * 200 + "end."
        chunks = split_text(text, max_length=120, min_length=30)

        assert all(chunk.length <= 120 for chunk in chunks)
        for chunk in chunks:
            assert all(token in ("word", "Short", "intro", "here.", "end.", "word.") for token in chunk.text.split())

    def test_cjk_punctuation_ends_units(self):
        chunks = split_text("第一句。第二句。第三句。", max_length=8, min_length=1)

        assert [chunk.text for chunk in chunks] == ["第一句。第二句。", "第三句。"]

    def test_final_remainder_may_be_short(self):
        text = "A" * 60 + ". " + "B" * 60 + ". Tiny."
        chunks = split_text(text, max_length=125, min_length=50)

        assert [chunk.length for chunk in chunks] == [123, 5]
        assert chunks[-1].text == "Tiny."

    def test_empty_text(self):
        assert split_text("   ", max_length=100) == []


class TestForceStrategy:
    """Test raw length chunking."""

    def test_cuts_at_max_length_without_whitespace(self):
        chunks = split_text("a" * 250, max_length=100, strategy=SplitStrategy.FORCE)

        assert [chunk.length for chunk in chunks] == [100, 100, 50]

    def test_backs_off_to_whitespace(self):
        text = "alpha beta gamma delta epsilon zeta eta theta"
        chunks = split_text(text, max_length=20, min_length=5, strategy=SplitStrategy.FORCE)

        assert all(chunk.length <= 20 for chunk in chunks)
        assert " ".join(chunk.text for chunk in chunks) == text

    def test_invalid_max_length(self):
        with pytest.raises(ValueError):
            TextChunker(0)


class TestOverlapStrategy:
    """Test chunking with carried-over context."""

    def test_consecutive_chunks_overlap_from_sentence_start(self):
        text = numbered_text(40)
        chunks = TextChunker(200, 50, 60).overlap_chunks(text)

        assert len(chunks) > 1
        for previous, current in zip(chunks, chunks[1:]):
            assert current.start_index < previous.end_index
            assert text[current.start_index - 2] == "."

    def test_overlap_chunks_respect_max_length(self):
        chunks = TextChunker(200, 50, 60).overlap_chunks(numbered_text(40))

        assert all(chunk.length <= 200 for chunk in chunks)

    def test_zero_overlap_matches_boundary(self):
        text = numbered_text(30)
        chunker = TextChunker(200, 50, 0)

        assert chunker.overlap_chunks(text) == chunker.boundary_chunks(text)
