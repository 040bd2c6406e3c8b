"""
Chunked processing for inputs above an operation's size threshold.
"""
import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core.config import (
    ChunkStrategy,
    HIGH_VOLUME_OVERLAP_RATIO,
    HIGH_VOLUME_SHRINK_RATIO,
    ProcessingConfig,
)
from core.exceptions import ChunkProcessingError, OrchestrationError
from core.progress import ProgressReporter
from models.text_models import Chunk, Sentence, VocabularyEntry
from services.processing.chunker import TextChunker
from services.processing.utils import (
    dedupe_vocabulary,
    drop_overlap_sentences,
    renumber_sentences,
    sleep_ms,
)

logger = logging.getLogger(__name__)

OPERATIONS = ("split", "explain", "vocabulary")

# handler(chunk_text, english_level, client_id) -> list of results for the chunk
ChunkHandler = Callable[[str, Optional[str], Optional[str]], Awaitable[List[Any]]]


class LargeFileProcessor:
    """Drives chunk-by-chunk processing and merges the per-chunk results."""

    def __init__(
        self,
        handlers: Dict[str, ChunkHandler],
        config: Optional[ProcessingConfig] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        unknown = set(handlers) - set(OPERATIONS)
        if unknown:
            raise ValueError(f"Unknown operations: {sorted(unknown)}")
        self.handlers = handlers
        self.config = config or ProcessingConfig()
        self.progress = progress or ProgressReporter()

    def is_large(self, text: str, operation: str) -> bool:
        threshold = self.config.large_file_thresholds.get(operation)
        return threshold is not None and len(text) > threshold

    def strategy_for(self, operation: str, text_length: int) -> ChunkStrategy:
        """Chunk strategy for an operation, tightened for very large inputs."""
        strategy = self.config.chunk_strategies[operation]
        if text_length <= self.config.high_volume_threshold:
            return strategy

        max_size = int(strategy.max_chunk_size * HIGH_VOLUME_SHRINK_RATIO)
        return replace(
            strategy,
            max_chunk_size=max_size,
            min_chunk_size=min(strategy.min_chunk_size, max_size // 2),
            overlap_size=int(strategy.overlap_size * HIGH_VOLUME_OVERLAP_RATIO),
        )

    def chunk_delay_ms(self, operation: str, chunk_index: int, total_chunks: int) -> float:
        """Pause before chunk_index; later chunks wait a little longer."""
        base = self.config.chunk_strategies[operation].chunk_delay_ms
        return base * (1 + 0.5 * chunk_index / max(1, total_chunks))

    async def process(
        self,
        text: str,
        operation: str,
        english_level: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> List[Any]:
        """
        Process text chunk by chunk and merge the results.

        Chunks run strictly one after another. A failing vocabulary chunk
        contributes nothing; a failing split or explain chunk aborts the run.

        Raises:
            ChunkProcessingError: split/explain chunk failure, with the chunk index
        """
        if operation not in self.handlers:
            raise ValueError(f"No chunk handler registered for operation: {operation}")

        strategy = self.strategy_for(operation, len(text))
        chunks = TextChunker.from_strategy(strategy).overlap_chunks(text)
        total = len(chunks)
        logger.info(
            f"Large-file {operation}: {len(text)} chars in {total} chunks "
            f"(max {strategy.max_chunk_size}, overlap {strategy.overlap_size})"
        )
        self.progress.report(client_id, "info", f"Large file detected, processing in {total} chunks")

        results: List[List[Any]] = []
        failed: List[int] = []
        for index, chunk in enumerate(chunks):
            if index > 0:
                await sleep_ms(self.chunk_delay_ms(operation, index, total))

            self.progress.report(client_id, "info", f"Processing chunk {index + 1}/{total}")
            try:
                results.append(await self._run_chunk(operation, chunk, english_level, client_id))
            except OrchestrationError as e:
                if operation != "vocabulary":
                    logger.error(f"Large-file {operation} failed on chunk {index + 1}/{total}: {e}")
                    raise ChunkProcessingError(operation, index, total, e) from e

                failed.append(index)
                logger.warning(f"Vocabulary chunk {index + 1}/{total} failed, skipping: {e}")
                self.progress.report(client_id, "warning", f"Chunk {index + 1}/{total} failed, continuing")
                results.append([])

        if failed:
            logger.warning(f"Large-file {operation}: {len(failed)}/{total} chunks failed: {failed}")

        merged = self._merge(operation, text, chunks, results)
        logger.info(f"Large-file {operation} complete: {len(merged)} items from {total} chunks")
        return merged

    async def _run_chunk(
        self,
        operation: str,
        chunk: Chunk,
        english_level: Optional[str],
        client_id: Optional[str],
    ) -> List[Any]:
        logger.debug(f"{operation} chunk [{chunk.start_index}:{chunk.end_index}] ({chunk.length} chars)")
        return await self.handlers[operation](chunk.text, english_level, client_id)

    def _merge(self, operation: str, text: str, chunks: List[Chunk], results: List[List[Any]]) -> List[Any]:
        if operation == "vocabulary":
            entries: List[VocabularyEntry] = [entry for chunk in results for entry in chunk]
            return dedupe_vocabulary(entries, self.config.max_vocabulary_entries)

        merged: List[Sentence] = []
        for index, chunk_sentences in enumerate(results):
            if index == 0:
                merged.extend(chunk_sentences)
                continue
            # Span re-sent from the end of the previous chunk; empty without overlap
            overlap_text = text[chunks[index].start_index:chunks[index - 1].end_index]
            merged.extend(drop_overlap_sentences(chunk_sentences, overlap_text))
        return renumber_sentences(merged)
