"""
Sentence explanation generation in fixed-size batches.
"""
import logging
from typing import Any, List, Optional

from core.config import ProcessingConfig
from core.exceptions import MalformedResponseError
from core.progress import ProgressReporter
from core.prompt_manager import PromptManager, prompt_manager
from core.request_invoker import RequestInvoker
from models.text_models import ExplainedSentence, Sentence
from services.processing.response_validator import validate_and_clean_json
from services.processing.utils import renumber_sentences, sleep_ms

logger = logging.getLogger(__name__)


class ExplanationGenerator:
    """Explains sentences one batch per request; any failed batch is fatal."""

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

    async def generate_sentence_explanations(
        self,
        sentences: List[Sentence],
        english_level: str,
        client_id: Optional[str] = None,
        batch_size: Optional[int] = None,
    ) -> List[ExplainedSentence]:
        """
        Explain each sentence.

        Args:
            sentences: Sentences to explain (left untouched)
            english_level: Target learner level
            client_id: Progress sink key
            batch_size: Sentences per request (configured size if None)

        Returns:
            New ExplainedSentence list in input order, ids 1..N

        Raises:
            MalformedResponseError: If a reply is not one explanation per sentence
            RemoteCallFailedError: If a batch request fails
        """
        if not sentences:
            return []

        size = batch_size or self.config.explanation_batch_size
        batches = [sentences[i:i + size] for i in range(0, len(sentences), size)]
        logger.info(
            f"Generating explanations for {len(sentences)} sentences in {len(batches)} batches "
            f"(level {english_level})"
        )

        explained: List[ExplainedSentence] = []
        for index, batch in enumerate(batches):
            if index > 0:
                await sleep_ms(self.config.batch_delay_ms)

            self.progress.report(client_id, "info", f"Explaining batch {index + 1}/{len(batches)}")
            explanations = await self._explain_batch(batch, english_level)
            explained.extend(
                ExplainedSentence(id=sentence.id, text=sentence.text, explanation=explanation)
                for sentence, explanation in zip(batch, explanations)
            )
            logger.debug(f"Batch {index + 1}/{len(batches)} explained ({len(batch)} sentences)")

        return renumber_sentences(explained)

    async def _explain_batch(self, batch: List[Sentence], english_level: str) -> List[str]:
        prompt = self.prompts.explanation_prompt([s.text for s in batch], english_level)
        reply = await self.invoker.invoke(prompt, "")
        items = validate_and_clean_json(reply, "array")

        if len(items) != len(batch):
            raise MalformedResponseError(
                f"Expected {len(batch)} explanations, got {len(items)}", raw_response=reply
            )
        return [_explanation_text(item, reply) for item in items]


def _explanation_text(item: Any, reply: str) -> str:
    # Some replies wrap each explanation in an object
    if isinstance(item, dict):
        item = item.get("explanation")
    text = item.strip() if isinstance(item, str) else ""
    if not text:
        raise MalformedResponseError(f"Explanation item has no text: {item!r}", raw_response=reply)
    return text
