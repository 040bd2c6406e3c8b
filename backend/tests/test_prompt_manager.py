"""
Unit tests for prompt loading and formatting.
"""
import pytest

from core.prompt_manager import PromptManager


class TestGetPrompt:
    """Test file overrides, caching and fallbacks."""

    def test_file_overrides_fallback(self, tmp_path):
        (tmp_path / "sentence_split.txt").write_text("Split this text, one sentence per line.", encoding="utf-8")
        manager = PromptManager(prompts_dir=tmp_path)

        assert manager.sentence_split_prompt() == "Split this text, one sentence per line."

    def test_loaded_prompt_is_cached(self, tmp_path):
        prompt_file = tmp_path / "sentence_split.txt"
        prompt_file.write_text("First version.", encoding="utf-8")
        manager = PromptManager(prompts_dir=tmp_path)

        manager.get_prompt("sentence_split")
        prompt_file.write_text("Second version.", encoding="utf-8")

        assert manager.get_prompt("sentence_split") == "First version."

    def test_empty_file_uses_fallback(self, tmp_path):
        (tmp_path / "sentence_split.txt").write_text("  \n", encoding="utf-8")
        manager = PromptManager(prompts_dir=tmp_path)

        assert manager.get_prompt("sentence_split") == manager.fallback_templates["sentence_split"]

    def test_missing_file_uses_fallback(self, tmp_path):
        manager = PromptManager(prompts_dir=tmp_path)

        assert manager.get_prompt("vocabulary_analysis") == manager.fallback_templates["vocabulary_analysis"]

    def test_unknown_prompt(self, tmp_path):
        manager = PromptManager(prompts_dir=tmp_path)

        with pytest.raises(FileNotFoundError):
            manager.get_prompt("translation")


class TestFormatting:
    """Test placeholder filling for file-provided templates."""

    def test_vocabulary_override_is_formatted(self, tmp_path):
        (tmp_path / "vocabulary_analysis.txt").write_text(
            "Level {english_level}. Analyze: {text}", encoding="utf-8"
        )
        manager = PromptManager(prompts_dir=tmp_path)

        assert manager.vocabulary_prompt("A resilient plan.", "IELTS") == "Level IELTS. Analyze: A resilient plan."

    def test_explanation_override_is_formatted(self, tmp_path):
        (tmp_path / "sentence_explanation.txt").write_text(
            "{count} sentences for {english_level}:\n{sentences}", encoding="utf-8"
        )
        manager = PromptManager(prompts_dir=tmp_path)

        prompt = manager.explanation_prompt(["Hello world.", "Goodbye."], "CET-4")

        assert prompt == '2 sentences for CET-4:\n1. "Hello world."\n2. "Goodbye."'
