"""
Data model for a complete generated learning material.
"""
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any

from models.text_models import Paragraph, VocabularyEntry


@dataclass
class LearningMaterial:
    """Result of processing one document end to end"""
    english_level: str
    paragraphs: List[Paragraph] = field(default_factory=list)
    vocabulary: List[VocabularyEntry] = field(default_factory=list)
    processing_time_ms: int = 0

    @property
    def total_paragraphs(self) -> int:
        return len(self.paragraphs)

    @property
    def total_sentences(self) -> int:
        return sum(len(p.sentences) for p in self.paragraphs)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total_paragraphs"] = self.total_paragraphs
        data["total_sentences"] = self.total_sentences
        return data
