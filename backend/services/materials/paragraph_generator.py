"""
Paragraph grouping and title generation for split sentences.
"""
import logging
from typing import Any, List, Optional, Tuple

from core.config import PROMPT_SHRINK_RATIO, ProcessingConfig
from core.exceptions import EmptyInputError, MalformedResponseError, PromptTooLargeError
from core.progress import ProgressReporter
from core.prompt_manager import PromptManager, prompt_manager
from core.request_invoker import RequestInvoker
from models.text_models import Paragraph, Sentence
from services.processing.response_validator import validate_and_clean_json
from services.processing.utils import sleep_ms

logger = logging.getLogger(__name__)


class ParagraphGenerator:
    """Groups sentences into titled paragraphs, batching long sentence lists."""

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

    async def generate_paragraphs_with_titles(
        self,
        sentences: List[Sentence],
        english_level: str,
        client_id: Optional[str] = None,
    ) -> List[Paragraph]:
        """
        Group sentences into paragraphs with titles.

        Above the batch threshold the sentences go out in fixed-size batches,
        one request at a time. Paragraph ids and sentence ids are renumbered
        to run contiguously over the whole result.

        Raises:
            EmptyInputError: If there are no sentences
            PromptTooLargeError: If a batch cannot be shrunk under the prompt limit
            MalformedResponseError: If a reply is not a list of paragraph objects
        """
        if not sentences:
            raise EmptyInputError("No sentences to group into paragraphs")

        batched = len(sentences) > self.config.paragraph_batch_threshold
        batch_size = self.config.paragraph_batch_size if batched else len(sentences)
        logger.info(
            f"Generating paragraphs for {len(sentences)} sentences "
            f"({'batches of ' + str(batch_size) if batched else 'single request'}, level {english_level})"
        )

        remaining = list(sentences)
        paragraphs: List[Paragraph] = []
        batch_number = 0

        while remaining:
            batch, prompt = self._fit_batch(remaining[:batch_size], remaining, english_level)
            # Sentences cut from an oversized batch lead the next one
            remaining = remaining[len(batch):]
            batch_number += 1

            if batch_number > 1:
                await sleep_ms(self.config.batch_delay_ms)

            self.progress.report(
                client_id, "info",
                f"Generating paragraphs: batch {batch_number} ({len(batch)} sentences, {len(remaining)} left)"
            )
            reply = await self.invoker.invoke(prompt, "")
            batch_paragraphs = self._parse_paragraphs(reply)
            logger.debug(f"Batch {batch_number}: {len(batch_paragraphs)} paragraphs from {len(batch)} sentences")
            paragraphs.extend(batch_paragraphs)

        return _renumber(paragraphs)

    def _fit_batch(
        self,
        batch: List[Sentence],
        remaining: List[Sentence],
        english_level: str,
    ) -> Tuple[List[Sentence], str]:
        """Shrink batch until its prompt fits under the size limit."""
        limit = self.config.prompt_size_limit

        while True:
            prompt = self.prompts.paragraph_prompt([s.text for s in batch], english_level)
            if len(prompt) <= limit:
                return batch, prompt

            if len(batch) <= 1:
                raise PromptTooLargeError(
                    f"Paragraph prompt is {len(prompt)} chars (limit {limit}) even for a single sentence; "
                    f"{len(remaining)} sentences left unprocessed",
                    prompt_length=len(prompt),
                    limit=limit,
                    remaining_sentences=len(remaining),
                )

            new_size = min(len(batch) - 1, max(1, int(len(batch) * PROMPT_SHRINK_RATIO)))
            logger.warning(
                f"Paragraph prompt too large ({len(prompt)} > {limit} chars), "
                f"shrinking batch {len(batch)} -> {new_size} sentences"
            )
            batch = batch[:new_size]

    def _parse_paragraphs(self, reply: str) -> List[Paragraph]:
        items = validate_and_clean_json(reply, "array")
        paragraphs = []

        for index, item in enumerate(items):
            if not isinstance(item, dict) or not isinstance(item.get("sentences"), list):
                raise MalformedResponseError(
                    f"Paragraph item {index + 1} has no sentence list", raw_response=reply
                )

            texts = [_sentence_text(s, reply) for s in item["sentences"]]
            if not texts:
                logger.warning(f"Skipping paragraph item {index + 1} without sentences")
                continue

            paragraphs.append(Paragraph(
                id=index + 1,
                title=str(item.get("title") or ""),
                learning_objective=str(item.get("objective") or ""),
                focus_area=str(item.get("focus") or ""),
                relevance=str(item.get("relevance") or ""),
                sentences=[Sentence(id=j + 1, text=t) for j, t in enumerate(texts)],
            ))

        return paragraphs


def _sentence_text(value: Any, reply: str) -> str:
    if isinstance(value, dict):
        value = value.get("text")
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise MalformedResponseError(f"Paragraph sentence has no text: {value!r}", raw_response=reply)
    return text


def _renumber(paragraphs: List[Paragraph]) -> List[Paragraph]:
    """Paragraph ids 1..P and sentence ids 1..N across all paragraphs."""
    result = []
    sentence_id = 0
    for index, paragraph in enumerate(paragraphs):
        sentences = []
        for sentence in paragraph.sentences:
            sentence_id += 1
            sentences.append(Sentence(id=sentence_id, text=sentence.text))
        result.append(Paragraph(
            id=index + 1,
            title=paragraph.title,
            learning_objective=paragraph.learning_objective,
            focus_area=paragraph.focus_area,
            relevance=paragraph.relevance,
            sentences=sentences,
        ))
    return result
