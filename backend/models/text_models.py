"""
Data models for sentences, chunks and generated learning content.
"""
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any


@dataclass
class Sentence:
    """One sentence; id is 1-based and only meaningful within its current list"""
    id: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExplainedSentence(Sentence):
    """Sentence paired with its generated explanation"""
    explanation: str = ""


@dataclass
class Chunk:
    """Slice of a larger text, text == source[start_index:end_index]"""
    text: str
    start_index: int
    end_index: int

    @property
    def length(self) -> int:
        return len(self.text)


@dataclass
class Paragraph:
    """Titled group of sentences"""
    id: int
    title: str
    learning_objective: str = ""
    focus_area: str = ""
    relevance: str = ""
    sentences: List[Sentence] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class VocabularyEntry:
    """Key term with explanation, usage note and examples"""
    term: str
    explanation: str
    usage: str
    examples: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
