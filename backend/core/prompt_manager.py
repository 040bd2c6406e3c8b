"""
Centralized prompt file management with fallback templates.
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional

from core.config import DEFAULT_LEVEL_FOCUS, ENGLISH_LEVELS, PROMPTS_DIR

logger = logging.getLogger(__name__)

REQUIRED_PROMPTS = (
    "sentence_split",
    "paragraph_titles",
    "sentence_explanation",
    "vocabulary_analysis",
)


class PromptManager:
    """Manages prompt file loading with consistent fallback behavior."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        self.prompts_dir = prompts_dir or PROMPTS_DIR
        self.loaded_prompts: Dict[str, str] = {}

        # Fallback templates
        self.fallback_templates = {
            "sentence_split": self._get_sentence_split_fallback(),
            "paragraph_titles": self._get_paragraph_titles_fallback(),
            "sentence_explanation": self._get_sentence_explanation_fallback(),
            "vocabulary_analysis": self._get_vocabulary_analysis_fallback(),
        }

    def get_prompt(self, prompt_name: str) -> str:
        """
        Load prompt by name with fallback.

        Args:
            prompt_name: Name of prompt file (without .txt extension)

        Returns:
            Prompt template string
        """
        # Return cached if already loaded
        if prompt_name in self.loaded_prompts:
            return self.loaded_prompts[prompt_name]

        # Try to load from file
        prompt_file = self.prompts_dir / f"{prompt_name}.txt"

        if prompt_file.exists():
            try:
                template = prompt_file.read_text(encoding="utf-8")

                # Validate not empty
                if not template.strip():
                    raise ValueError(f"Prompt file is empty: {prompt_file}")

                # Cache and return
                self.loaded_prompts[prompt_name] = template
                return template

            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load prompt file {prompt_file}: {e}")
                # Fall through to fallback

        # Use fallback template
        if prompt_name in self.fallback_templates:
            logger.debug(f"Using fallback template for: {prompt_name}")
            template = self.fallback_templates[prompt_name]
            self.loaded_prompts[prompt_name] = template
            return template

        # No fallback available
        raise FileNotFoundError(
            f"Prompt file not found and no fallback available: {prompt_name}.txt. "
            f"Expected at: {prompt_file}"
        )

    def sentence_split_prompt(self) -> str:
        return self.get_prompt("sentence_split")

    def paragraph_prompt(self, sentence_texts: List[str], english_level: str) -> str:
        numbered = "\n".join(f'{i + 1}. "{text}"' for i, text in enumerate(sentence_texts))
        return self.get_prompt("paragraph_titles").format(
            english_level=english_level,
            level_focus=get_level_focus(english_level),
            sentences=numbered,
        )

    def explanation_prompt(self, sentence_texts: List[str], english_level: str) -> str:
        numbered = "\n".join(f'{i + 1}. "{text}"' for i, text in enumerate(sentence_texts))
        return self.get_prompt("sentence_explanation").format(
            count=len(sentence_texts),
            english_level=english_level,
            sentences=numbered,
        )

    def vocabulary_prompt(self, text: str, english_level: str) -> str:
        return self.get_prompt("vocabulary_analysis").format(
            english_level=english_level,
            text=text,
        )

    def _get_sentence_split_fallback(self) -> str:
        """Fallback template for sentence splitting."""
        return """You are a professional sentence segmentation assistant. Split the text provided by the user into sentences along semantic and grammatical boundaries, keeping every sentence complete and natural.

Requirements:
1. Split by semantic units without breaking grammatical structure
2. Keep the meaning and tone of the original unchanged
3. Output one complete sentence per line
4. Do not add, remove or change any punctuation
5. Do not add numbering, markers or any other formatting
6. Output only the split sentences, one per line

Notes:
- For subtitles, merge related subtitle fragments into complete sentences
- For plain text, follow natural semantic boundaries
- Preserve the continuity and completeness of the original"""

    def _get_paragraph_titles_fallback(self) -> str:
        """Fallback template for paragraph grouping and titles."""
        return """You are a JSON-only response AI. You must return ONLY valid JSON without any explanation, introduction, or additional text.

TASK: Intelligently group sentences into meaningful paragraphs and generate titles for each paragraph.

CONTEXT: This is part of a larger English learning material.

LEARNING OBJECTIVES:
- Target level: {english_level}
- Focus: {level_focus}

REQUIREMENTS:
1. Group sentences into several meaningful paragraphs based on semantic coherence
2. Each paragraph should contain several sentences that are thematically related
3. Generate an engaging title for each paragraph
4. Ensure logical flow and natural transitions between paragraphs

For each paragraph, create:
1. An engaging English title (3-5 words)
2. A clear learning objective
3. Key grammar/vocabulary focus
4. Relevance to the content
5. The sentences that belong to this paragraph

Sentences to analyze and group:
{sentences}

CRITICAL: Return ONLY the JSON array below, no other text:
[{{
  "title": "Engaging English Title",
  "objective": "Students will learn to...",
  "focus": "past tense/vocabulary/phrasal verbs",
  "relevance": "how this relates to the content",
  "sentences": ["sentence 1", "sentence 2"]
}}]"""

    def _get_sentence_explanation_fallback(self) -> str:
        """Fallback template for sentence explanations."""
        return """You are a JSON-only response AI. You must return ONLY valid JSON without any explanation, introduction, or additional text.

TASK: Explain these {count} English sentences in simple English suitable for {english_level} level learners.
For each sentence, provide a concise explanation (under 80 words) focusing on meaning and key grammar points.

Sentences to explain:
{sentences}

CRITICAL: Return ONLY the JSON array below, no other text:
["Explanation 1", "Explanation 2"]"""

    def _get_vocabulary_analysis_fallback(self) -> str:
        """Fallback template for vocabulary analysis."""
        return """You are a JSON-only response AI. You must return ONLY valid JSON without any explanation, introduction, or additional text.

TASK: Analyze this English text and identify 6-8 key vocabulary words suitable for {english_level} learners.

Text to analyze: {text}

CRITICAL: Return ONLY the JSON array below, no other text:
[{{"term":"word","explanation":"simple meaning","usage":"how to use","examples":["ex1","ex2"]}}]"""


def get_level_focus(english_level: str) -> str:
    """Learning focus for an English level."""
    return ENGLISH_LEVELS.get(english_level, DEFAULT_LEVEL_FOCUS)


# Global prompt manager instance
prompt_manager = PromptManager()
