"""
Integration tests for the learning-material pipeline against a scripted model.
"""
from dataclasses import replace
from unittest.mock import Mock

import pytest

from conftest import ScriptedClient, fake_model, split_into_sentences
from core.config import ChunkStrategy
from core.llm_client import RemoteServiceError
from core.pipeline import LearningMaterialPipeline
from models.text_models import ExplainedSentence

SRT_CONTENT = """1
00:00:01,000 --> 00:00:03,000
Hello world.

2
00:00:03,500 --> 00:00:05,000
This is great!

3
00:00:05,500 --> 00:00:07,000
Are you sure about vocabulary?
"""

TOPICS = ["astronomy", "biography", "chemistry", "democracy", "economics", "festival", "geography", "invention"]


def numbered_text(count: int) -> str:
    return " ".join(f"Sentence number {i:03d} is here." for i in range(count))


def with_processing(config, **overrides):
    return replace(config, processing=replace(config.processing, **overrides))


class TestPipelineOperations:
    """Test the individual operations through the wired pipeline."""

    @pytest.mark.asyncio
    async def test_split_then_explain(self, fast_config):
        client = ScriptedClient(responder=fake_model)
        pipeline = LearningMaterialPipeline(client=client, config=fast_config)

        sentences = await pipeline.split_sentences("Hello world. This is great! Are you sure?")
        explained = await pipeline.generate_sentence_explanations(sentences, "CET-4", batch_size=2)

        assert [s.id for s in explained] == [1, 2, 3]
        assert explained[2].explanation == "Explanation of: Are you sure?"
        assert len(client.calls) == 3

    @pytest.mark.asyncio
    async def test_large_split_goes_through_chunks(self, fast_config):
        strategies = dict(fast_config.processing.chunk_strategies)
        strategies["split"] = ChunkStrategy(200, 50, 40, 0)
        config = with_processing(
            fast_config,
            large_file_thresholds={"split": 300, "explain": 6000, "vocabulary": 10000},
            chunk_strategies=strategies,
        )
        client = ScriptedClient(responder=fake_model)
        pipeline = LearningMaterialPipeline(client=client, config=config)
        text = numbered_text(20)

        sentences = await pipeline.split_sentences(text)

        assert [s.text for s in sentences] == split_into_sentences(text)
        assert [s.id for s in sentences] == list(range(1, 21))
        assert len(client.calls) > 1

    @pytest.mark.asyncio
    async def test_explain_text_in_chunks(self, fast_config):
        strategies = dict(fast_config.processing.chunk_strategies)
        strategies["explain"] = ChunkStrategy(200, 50, 0, 0)
        config = with_processing(
            fast_config,
            large_file_thresholds={"split": 15000, "explain": 300, "vocabulary": 10000},
            chunk_strategies=strategies,
        )
        pipeline = LearningMaterialPipeline(client=ScriptedClient(responder=fake_model), config=config)
        text = numbered_text(20)

        explained = await pipeline.explain_text(text, "CET-6")

        assert [s.id for s in explained] == list(range(1, 21))
        assert all(isinstance(s, ExplainedSentence) for s in explained)
        assert [s.explanation for s in explained] == [f"Explanation of: {s}" for s in split_into_sentences(text)]

    @pytest.mark.asyncio
    async def test_vocabulary_survives_failed_chunk(self, fast_config):
        vocabulary_calls = []

        def responder(system_prompt, user_text):
            if "key vocabulary" in system_prompt:
                vocabulary_calls.append(system_prompt)
                if len(vocabulary_calls) == 2:
                    return RemoteServiceError("HTTP 400: bad request", status_code=400)
            return fake_model(system_prompt, user_text)

        text = " ".join(
            f"Students discussed {TOPICS[i % len(TOPICS)]} during lesson {i}." for i in range(700)
        )
        pipeline = LearningMaterialPipeline(client=ScriptedClient(responder=responder), config=fast_config)

        entries = await pipeline.generate_vocabulary_analysis(text, "IELTS")

        terms = [entry.term for entry in entries]
        assert len(text) > 30000
        assert len(vocabulary_calls) >= 3
        assert terms
        assert len(terms) == len(set(terms))
        assert len(terms) <= 8

    @pytest.mark.asyncio
    async def test_aclose_without_client_close(self, fast_config):
        pipeline = LearningMaterialPipeline(client=ScriptedClient(responder=fake_model), config=fast_config)

        await pipeline.aclose()


class TestProcessDocument:
    """Test the whole-document flow."""

    @pytest.mark.asyncio
    async def test_srt_document(self, fast_config):
        sink = Mock()
        pipeline = LearningMaterialPipeline(
            client=ScriptedClient(responder=fake_model),
            config=fast_config,
            progress_sink=sink,
        )

        material = await pipeline.process_document(SRT_CONTENT, "CET-4", client_id="doc-1", source_type="srt")

        assert material.english_level == "CET-4"
        assert material.total_paragraphs == 1
        assert material.total_sentences == 3
        sentences = material.paragraphs[0].sentences
        assert [s.text for s in sentences] == ["Hello world.", "This is great!", "Are you sure about vocabulary?"]
        assert sentences[0].explanation == "Explanation of: Hello world."
        assert [entry.term for entry in material.vocabulary] == ["vocabulary"]
        assert material.processing_time_ms >= 0

        messages = [c.args for c in sink.log_progress.call_args_list]
        assert messages[0] == ("doc-1", "info", "10% - Reading document")
        assert messages[-1] == ("doc-1", "success", "100% - Learning material ready")

        data = material.to_dict()
        assert data["total_sentences"] == 3
        assert data["paragraphs"][0]["sentences"][0]["explanation"] == "Explanation of: Hello world."

    @pytest.mark.asyncio
    async def test_unsupported_source_type(self, fast_config):
        pipeline = LearningMaterialPipeline(client=ScriptedClient(responder=fake_model), config=fast_config)

        with pytest.raises(ValueError):
            await pipeline.process_document("text", "CET-4", source_type="pdf")
