"""
Recursive sentence splitting on top of the completion service.

Long inputs are cut into parts up front; a call that fails because the
reply was truncated or the connection dropped is retried on the two halves
of its input, concurrently, down to a bounded depth.
"""
import asyncio
import logging
import re
from typing import List, Optional

from core.config import ProcessingConfig
from core.error_classifier import CONNECTION_CLASS_ERRORS, ErrorType, is_output_too_long
from core.exceptions import (
    EmptyInputError,
    OrchestrationError,
    RemoteCallFailedError,
    TextTooLongError,
)
from core.progress import ProgressReporter
from core.prompt_manager import PromptManager, prompt_manager
from core.request_invoker import RequestInvoker
from models.text_models import Sentence
from services.processing.chunker import TextChunker
from services.processing.utils import renumber_sentences, sleep_ms, snap_to_whitespace

logger = logging.getLogger(__name__)

_NUMBERED_LINE = re.compile(r"^\d+[.)]")
_BULLET_PREFIXES = ("-", "*", "•")


def parse_sentence_response(reply: str, min_length: int = 5) -> List[str]:
    """One sentence per line; drop numbering, bullets and fragments."""
    sentences = []
    for line in reply.split("\n"):
        line = line.strip()
        if not line or _NUMBERED_LINE.match(line) or line.startswith(_BULLET_PREFIXES):
            continue
        if len(line) <= min_length:
            continue
        sentences.append(line)
    return sentences


def is_bisectable(error: RemoteCallFailedError) -> bool:
    """Whether a smaller input could plausibly succeed where this one failed."""
    # A smaller request still counts against the same quota
    if error.classification.error_type == ErrorType.RATE_LIMIT:
        return False
    if is_output_too_long(str(error)):
        return True
    return error.classification.error_type in CONNECTION_CLASS_ERRORS


class SentenceSplitter:
    """Turns raw text into an ordered, contiguously numbered sentence list."""

    def __init__(
        self,
        invoker: RequestInvoker,
        config: Optional[ProcessingConfig] = None,
        prompts: Optional[PromptManager] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        self.invoker = invoker
        self.config = config or ProcessingConfig()
        self.prompts = prompts or prompt_manager
        self.progress = progress or ProgressReporter()
        # Set by the pipeline; the large-file path calls back into this splitter
        self.large_file_processor = None

    async def split_sentences(
        self,
        text: str,
        recursion_depth: int = 0,
        client_id: Optional[str] = None,
    ) -> List[Sentence]:
        """
        Split text into sentences.

        Args:
            text: Text to split
            recursion_depth: 0 for callers; grows by one per part/bisect level
            client_id: Progress sink key

        Returns:
            Sentences with ids 1..N

        Raises:
            EmptyInputError: If text is blank
            TextTooLongError: If the text still fails at the depth bound
            RemoteCallFailedError: For failures that bisecting cannot help
        """
        if not text or not text.strip():
            raise EmptyInputError("Input text is empty")

        max_depth = self.config.max_split_depth
        if recursion_depth > max_depth:
            raise TextTooLongError(
                f"Text too long to split (depth {recursion_depth} > {max_depth})",
                depth=recursion_depth,
                max_depth=max_depth,
            )

        is_top_level = recursion_depth == 0
        large_threshold = self.config.large_file_thresholds.get("split")

        if is_top_level and self.large_file_processor is not None and large_threshold and len(text) > large_threshold:
            try:
                return await self.large_file_processor.process(text, "split", client_id=client_id)
            except OrchestrationError as e:
                logger.warning(f"Large-file split failed, falling back to direct splitting: {e}")
                self.progress.report(client_id, "warning", "Large file processing failed, retrying in parts")

        if is_top_level and len(text) > self.config.pre_split_threshold:
            return await self._split_in_parts(text, recursion_depth, client_id)

        logger.info(f"Splitting {len(text)} chars into sentences (depth {recursion_depth})")
        try:
            reply = await self.invoker.invoke(self.prompts.sentence_split_prompt(), text)
        except RemoteCallFailedError as e:
            if not is_bisectable(e):
                raise
            if recursion_depth >= max_depth:
                raise TextTooLongError(
                    f"Text too long to split: still failing at depth {recursion_depth} ({e})",
                    depth=recursion_depth,
                    max_depth=max_depth,
                ) from e
            logger.info(f"Bisecting {len(text)} chars after {e.error_type} (depth {recursion_depth + 1})")
            return await self._bisect(text, recursion_depth, client_id)

        lines = parse_sentence_response(reply, self.config.min_sentence_length)
        if not lines:
            logger.warning(f"Sentence split returned no usable lines for {len(text)} chars")

        sentences = [Sentence(id=i + 1, text=line) for i, line in enumerate(lines)]
        logger.info(f"Split {len(text)} chars into {len(sentences)} sentences (depth {recursion_depth})")
        return sentences

    async def _split_in_parts(self, text: str, depth: int, client_id: Optional[str]) -> List[Sentence]:
        chunker = TextChunker(self.config.pre_split_part_size, self.config.pre_split_part_min_size)
        parts = chunker.boundary_chunks(text)
        logger.info(f"Pre-splitting {len(text)} chars into {len(parts)} parts")

        sentences: List[Sentence] = []
        for index, part in enumerate(parts):
            if index > 0:
                await sleep_ms(self.config.part_delay_ms)
            self.progress.report(client_id, "info", f"Splitting part {index + 1}/{len(parts)}")
            sentences.extend(await self.split_sentences(part.text, depth + 1, client_id))

        return renumber_sentences(sentences)

    async def _bisect(self, text: str, depth: int, client_id: Optional[str]) -> List[Sentence]:
        cut = snap_to_whitespace(text, len(text) // 2)
        first, second = text[:cut].strip(), text[cut:].strip()
        if not first or not second:
            raise TextTooLongError(
                f"Cannot bisect text of {len(text)} chars any further",
                depth=depth,
                max_depth=self.config.max_split_depth,
            )

        self.progress.report(client_id, "info", f"Reply too long, splitting text in two (level {depth + 1})")
        left, right = await asyncio.gather(
            self.split_sentences(first, depth + 1, client_id),
            self.split_sentences(second, depth + 1, client_id),
        )
        return renumber_sentences(left + right)
