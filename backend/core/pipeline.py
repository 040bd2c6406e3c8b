"""
Main pipeline orchestration for learning-material generation.
"""
import logging
import time
from typing import List, Optional

from core.config import OrchestratorConfig, load_config
from core.llm_client import DeepSeekClient
from core.progress import ProgressReporter, ProgressSink
from core.prompt_manager import PromptManager, prompt_manager
from core.request_invoker import CompletionClient, RequestInvoker
from models.material_models import LearningMaterial
from models.text_models import ExplainedSentence, Paragraph, Sentence, VocabularyEntry
from services.materials.explanation_generator import ExplanationGenerator
from services.materials.paragraph_generator import ParagraphGenerator
from services.materials.vocabulary_generator import VocabularyGenerator
from services.processing.large_file_processor import LargeFileProcessor
from services.processing.sentence_splitter import SentenceSplitter
from services.processing.transcriber import extract_text

logger = logging.getLogger(__name__)


class LearningMaterialPipeline:
    """Wires the orchestration components and runs the whole-document flow."""

    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        config: Optional[OrchestratorConfig] = None,
        progress_sink: Optional[ProgressSink] = None,
        prompts: Optional[PromptManager] = None,
    ):
        self.config = config or load_config()
        self.client = client or DeepSeekClient(self.config.completion)
        self.progress = ProgressReporter(progress_sink)
        prompts = prompts or prompt_manager
        processing = self.config.processing

        self.invoker = RequestInvoker(self.client, self.config.timeout, self.config.retry)
        self.splitter = SentenceSplitter(self.invoker, processing, prompts, self.progress)
        self.paragraphs = ParagraphGenerator(self.invoker, processing, prompts, self.progress)
        self.explanations = ExplanationGenerator(self.invoker, processing, prompts, self.progress)
        self.vocabulary = VocabularyGenerator(self.invoker, processing, prompts, self.progress)

        self.large_files = LargeFileProcessor(
            handlers={
                "split": self._split_chunk,
                "explain": self._explain_chunk,
                "vocabulary": self.vocabulary.analyze_chunk,
            },
            config=processing,
            progress=self.progress,
        )
        self.splitter.large_file_processor = self.large_files
        self.vocabulary.large_file_processor = self.large_files

    async def split_sentences(self, text: str, client_id: Optional[str] = None) -> List[Sentence]:
        return await self.splitter.split_sentences(text, client_id=client_id)

    async def generate_paragraphs_with_titles(
        self,
        sentences: List[Sentence],
        english_level: str,
        client_id: Optional[str] = None,
    ) -> List[Paragraph]:
        return await self.paragraphs.generate_paragraphs_with_titles(sentences, english_level, client_id)

    async def generate_sentence_explanations(
        self,
        sentences: List[Sentence],
        english_level: str,
        client_id: Optional[str] = None,
        batch_size: Optional[int] = None,
    ) -> List[ExplainedSentence]:
        return await self.explanations.generate_sentence_explanations(
            sentences, english_level, client_id, batch_size
        )

    async def generate_vocabulary_analysis(
        self,
        text: str,
        english_level: str,
        client_id: Optional[str] = None,
    ) -> List[VocabularyEntry]:
        return await self.vocabulary.generate_vocabulary_analysis(text, english_level, client_id)

    async def explain_text(
        self,
        text: str,
        english_level: str,
        client_id: Optional[str] = None,
    ) -> List[ExplainedSentence]:
        """Split and explain raw text, chunk by chunk when it is long."""
        if self.large_files.is_large(text, "explain"):
            return await self.large_files.process(text, "explain", english_level, client_id)

        sentences = await self.split_sentences(text, client_id)
        return await self.generate_sentence_explanations(sentences, english_level, client_id)

    async def process_document(
        self,
        content: str,
        english_level: str,
        client_id: Optional[str] = None,
        source_type: str = "txt",
    ) -> LearningMaterial:
        """
        Run the complete pipeline on one document.

        Pipeline Stages:
        1. Text extraction (plain text, SRT, VTT or HTML)
        2. Sentence splitting
        3. Paragraph grouping and titles
        4. Sentence explanations
        5. Vocabulary analysis

        Args:
            content: Raw document content
            english_level: Target learner level (e.g. "CET-4", "IELTS")
            client_id: Progress sink key
            source_type: Format of content

        Returns:
            LearningMaterial with explained paragraphs and vocabulary
        """
        started = time.monotonic()
        report = self.progress.report

        # STAGE 1: Extraction
        report(client_id, "info", "10% - Reading document")
        text = extract_text(content, source_type)
        logger.info(f"Processing {source_type} document: {len(text)} chars, level {english_level}")

        # STAGE 2: Sentence splitting
        report(client_id, "info", "15% - Splitting sentences")
        sentences = await self.split_sentences(text, client_id)
        report(client_id, "info", f"20% - Split into {len(sentences)} sentences")

        # STAGE 3: Paragraphs
        report(client_id, "info", "25% - Grouping paragraphs and generating titles")
        paragraphs = await self.generate_paragraphs_with_titles(sentences, english_level, client_id)

        # STAGE 4: Explanations, one request stream over every paragraph sentence
        report(client_id, "info", f"30% - Explaining sentences in {len(paragraphs)} paragraphs")
        flat = [sentence for paragraph in paragraphs for sentence in paragraph.sentences]
        explained = await self.generate_sentence_explanations(flat, english_level, client_id)
        paragraphs = _attach_explanations(paragraphs, explained)
        report(client_id, "info", "85% - Explanations complete")

        # STAGE 5: Vocabulary
        vocabulary = await self.generate_vocabulary_analysis(text, english_level, client_id)
        report(client_id, "info", "95% - Vocabulary analysis complete")

        material = LearningMaterial(
            english_level=english_level,
            paragraphs=paragraphs,
            vocabulary=vocabulary,
            processing_time_ms=int((time.monotonic() - started) * 1000),
        )
        report(client_id, "success", "100% - Learning material ready")
        logger.info(
            f"Document processed: {material.total_paragraphs} paragraphs, "
            f"{material.total_sentences} sentences, {len(vocabulary)} vocabulary entries "
            f"in {material.processing_time_ms}ms"
        )
        return material

    async def _split_chunk(
        self,
        chunk_text: str,
        english_level: Optional[str],
        client_id: Optional[str],
    ) -> List[Sentence]:
        # Depth 1 keeps the chunk off the large-file and pre-split paths
        return await self.splitter.split_sentences(chunk_text, recursion_depth=1, client_id=client_id)

    async def _explain_chunk(
        self,
        chunk_text: str,
        english_level: Optional[str],
        client_id: Optional[str],
    ) -> List[ExplainedSentence]:
        sentences = await self._split_chunk(chunk_text, english_level, client_id)
        return await self.generate_sentence_explanations(sentences, english_level or "", client_id)

    async def aclose(self) -> None:
        close = getattr(self.client, "aclose", None)
        if close is not None:
            await close()


def _attach_explanations(
    paragraphs: List[Paragraph],
    explained: List[ExplainedSentence],
) -> List[Paragraph]:
    """New paragraphs whose sentences are the explained ones, in order."""
    result = []
    position = 0
    for paragraph in paragraphs:
        count = len(paragraph.sentences)
        result.append(Paragraph(
            id=paragraph.id,
            title=paragraph.title,
            learning_objective=paragraph.learning_objective,
            focus_area=paragraph.focus_area,
            relevance=paragraph.relevance,
            sentences=list(explained[position:position + count]),
        ))
        position += count
    return result


# Global pipeline instance
pipeline = LearningMaterialPipeline()
