"""
Vocabulary analysis for a whole text or a single chunk of it.
"""
import logging
from typing import Any, List, Optional

from core.config import ProcessingConfig
from core.exceptions import EmptyInputError
from core.progress import ProgressReporter
from core.prompt_manager import PromptManager, prompt_manager
from core.request_invoker import RequestInvoker
from models.text_models import VocabularyEntry
from services.processing.response_validator import validate_and_clean_json
from services.processing.utils import dedupe_vocabulary

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("term", "explanation", "usage", "examples")


def parse_vocabulary_entry(item: Any) -> Optional[VocabularyEntry]:
    """Entry from a reply item, or None unless all four fields are present."""
    if not isinstance(item, dict) or not all(item.get(name) for name in REQUIRED_FIELDS):
        return None

    examples = item["examples"]
    if isinstance(examples, str):
        examples = [examples]
    elif not isinstance(examples, list):
        return None

    return VocabularyEntry(
        term=str(item["term"]).strip(),
        explanation=str(item["explanation"]).strip(),
        usage=str(item["usage"]).strip(),
        examples=[str(example).strip() for example in examples if str(example).strip()],
    )


class VocabularyGenerator:
    """Extracts key vocabulary, going chunk by chunk for large texts."""

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
        # Set by the pipeline
        self.large_file_processor = None

    async def generate_vocabulary_analysis(
        self,
        text: str,
        english_level: str,
        client_id: Optional[str] = None,
    ) -> List[VocabularyEntry]:
        """
        Extract up to the configured number of unique vocabulary entries.

        Raises:
            EmptyInputError: If text is blank
        """
        if not text or not text.strip():
            raise EmptyInputError("Input text is empty")

        if self.large_file_processor is not None and self.large_file_processor.is_large(text, "vocabulary"):
            return await self.large_file_processor.process(
                text, "vocabulary", english_level=english_level, client_id=client_id
            )

        self.progress.report(client_id, "info", "Analyzing vocabulary")
        return await self.analyze_chunk(text, english_level, client_id)

    async def analyze_chunk(
        self,
        text: str,
        english_level: Optional[str],
        client_id: Optional[str] = None,
    ) -> List[VocabularyEntry]:
        """One vocabulary request over text."""
        prompt = self.prompts.vocabulary_prompt(text, english_level or "")
        reply = await self.invoker.invoke(prompt, "")
        items = validate_and_clean_json(reply, "array")

        entries = [entry for entry in (parse_vocabulary_entry(item) for item in items) if entry]
        if len(entries) < len(items):
            logger.debug(f"Dropped {len(items) - len(entries)} incomplete vocabulary items")

        result = dedupe_vocabulary(entries, self.config.max_vocabulary_entries)
        logger.info(f"Vocabulary analysis: {len(result)} entries from {len(text)} chars")
        return result
