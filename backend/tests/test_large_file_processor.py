"""
Unit tests for chunked large-file processing.
"""
from dataclasses import replace

import pytest

from conftest import split_into_sentences
from core.config import ChunkStrategy, ProcessingConfig
from core.exceptions import ChunkProcessingError, MalformedResponseError
from models.text_models import Sentence, VocabularyEntry
from services.processing.large_file_processor import LargeFileProcessor
from services.processing.utils import drop_overlap_sentences


def numbered_text(count: int) -> str:
    return " ".join(f"Sentence number {i:03d} is here." for i in range(count))


async def sentence_handler(text, english_level, client_id):
    return [Sentence(id=i + 1, text=s) for i, s in enumerate(split_into_sentences(text))]


class TestStrategy:
    """Test chunk sizing and pacing."""

    def test_regular_strategy_is_unchanged(self, fast_config):
        processor = LargeFileProcessor({}, fast_config.processing)

        assert processor.strategy_for("split", 30000) == fast_config.processing.chunk_strategies["split"]

    def test_high_volume_tightens_chunks(self, fast_config):
        processor = LargeFileProcessor({}, fast_config.processing)

        strategy = processor.strategy_for("vocabulary", 60000)

        assert strategy.max_chunk_size == 6400
        assert strategy.min_chunk_size == 1000
        assert strategy.overlap_size == 600

    def test_chunk_delay_grows_with_index(self):
        processor = LargeFileProcessor({}, ProcessingConfig())

        assert processor.chunk_delay_ms("vocabulary", 0, 4) == 800
        assert processor.chunk_delay_ms("vocabulary", 2, 4) == 1000

    def test_is_large_uses_operation_threshold(self, fast_config):
        config = replace(fast_config.processing, large_file_thresholds={"split": 100, "explain": 50})
        processor = LargeFileProcessor({}, config)

        assert processor.is_large("x" * 101, "split") is True
        assert processor.is_large("x" * 100, "split") is False
        assert processor.is_large("x" * 1000, "vocabulary") is False

    def test_unknown_handler_rejected(self):
        with pytest.raises(ValueError):
            LargeFileProcessor({"translate": sentence_handler})


class TestProcess:
    """Test chunk iteration, failure policy and merging."""

    @pytest.mark.asyncio
    async def test_vocabulary_survives_failed_chunk(self, fast_config):
        calls = []

        async def handler(text, english_level, client_id):
            calls.append(english_level)
            if len(calls) == 2:
                raise MalformedResponseError("unparseable reply")
            return [
                VocabularyEntry(term="common", explanation="shared", usage="adj", examples=["A common case."]),
                VocabularyEntry(term=f"chunk{len(calls)}a", explanation="x", usage="noun", examples=["x"]),
                VocabularyEntry(term=f"chunk{len(calls)}b", explanation="y", usage="noun", examples=["y"]),
            ]

        processor = LargeFileProcessor({"vocabulary": handler}, fast_config.processing)

        entries = await processor.process(numbered_text(700), "vocabulary", english_level="IELTS")

        terms = [entry.term for entry in entries]
        assert len(calls) >= 3
        assert set(calls) == {"IELTS"}
        assert terms[0] == "common"
        assert len(terms) == len(set(terms))
        assert len(terms) <= 8
        assert "chunk2a" not in terms

    @pytest.mark.asyncio
    async def test_split_failure_aborts_with_chunk_index(self, fast_config):
        calls = []

        async def handler(text, english_level, client_id):
            calls.append(text)
            if len(calls) == 2:
                raise MalformedResponseError("unparseable reply")
            return await sentence_handler(text, english_level, client_id)

        processor = LargeFileProcessor({"split": handler}, fast_config.processing)

        with pytest.raises(ChunkProcessingError) as exc_info:
            await processor.process(numbered_text(300), "split")

        error = exc_info.value
        assert error.operation == "split"
        assert error.chunk_index == 1
        assert error.total_chunks >= 3
        assert error.error_type == "MALFORMED_RESPONSE"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_split_merge_drops_overlap_duplicates(self, fast_config):
        strategies = dict(fast_config.processing.chunk_strategies)
        strategies["split"] = ChunkStrategy(300, 50, 80, 0)
        config = replace(fast_config.processing, chunk_strategies=strategies)
        processor = LargeFileProcessor({"split": sentence_handler}, config)
        text = numbered_text(30)

        sentences = await processor.process(text, "split")

        assert [s.text for s in sentences] == split_into_sentences(text)
        assert [s.id for s in sentences] == list(range(1, 31))

    @pytest.mark.asyncio
    async def test_unregistered_operation(self, fast_config):
        processor = LargeFileProcessor({"split": sentence_handler}, fast_config.processing)

        with pytest.raises(ValueError):
            await processor.process("Some text.", "explain")


def split_config(fast_config, strategy):
    strategies = dict(fast_config.processing.chunk_strategies)
    strategies["split"] = strategy
    return replace(fast_config.processing, chunk_strategies=strategies)


class TestOverlapMerge:
    """Test that merging only removes sentences re-sent in the chunk overlap."""

    @pytest.mark.asyncio
    async def test_repeated_chorus_across_chunks_is_kept(self, fast_config):
        verse = " ".join(f"Verse line {i} goes by." for i in range(10))
        chorus = " ".join(["Hold on tight to me."] * 60)
        bridge = " ".join(f"Bridge line {i} fades out." for i in range(10))
        text = f"{verse} {chorus} {bridge}"
        config = split_config(fast_config, ChunkStrategy(300, 50, 80, 0))
        processor = LargeFileProcessor({"split": sentence_handler}, config)

        sentences = await processor.process(text, "split")

        assert [s.text for s in sentences] == split_into_sentences(text)
        assert len(sentences) == 80

    @pytest.mark.asyncio
    async def test_zero_overlap_keeps_identical_sentences(self, fast_config):
        text = " ".join(["We will rock you now."] * 12)
        config = split_config(fast_config, ChunkStrategy(60, 10, 0, 0))
        processor = LargeFileProcessor({"split": sentence_handler}, config)

        sentences = await processor.process(text, "split")

        assert len(sentences) == 12
        assert [s.id for s in sentences] == list(range(1, 13))

    def test_only_sentences_inside_overlap_are_dropped(self):
        current = [Sentence(id=i + 1, text="Hold on tight to me.") for i in range(4)]

        kept = drop_overlap_sentences(current, "Hold on tight to me.\nHold on tight to me.")

        assert len(kept) == 2

    def test_empty_overlap_drops_nothing(self):
        current = [Sentence(id=1, text="Same line."), Sentence(id=2, text="Same line.")]

        assert drop_overlap_sentences(current, "") == current

    def test_sentence_not_in_overlap_stops_dropping(self):
        current = [Sentence(id=1, text="New line."), Sentence(id=2, text="Old line.")]

        assert drop_overlap_sentences(current, "Old line.") == current
