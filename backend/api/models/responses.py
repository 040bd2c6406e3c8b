"""
Pydantic response models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class SentenceOut(BaseModel):
    """Sentence with optional explanation."""
    id: int
    text: str
    explanation: Optional[str] = None


class ParagraphOut(BaseModel):
    """Titled paragraph."""
    id: int
    title: str
    learning_objective: str = ""
    focus_area: str = ""
    relevance: str = ""
    sentences: List[SentenceOut] = []


class VocabularyEntryOut(BaseModel):
    """Vocabulary term."""
    term: str
    explanation: str
    usage: str
    examples: List[str] = []


class SentencesResponse(BaseModel):
    """Response model for sentence splitting and explanations."""
    sentences: List[SentenceOut]
    total: int


class ParagraphsResponse(BaseModel):
    """Response model for paragraph generation."""
    paragraphs: List[ParagraphOut]
    total: int


class VocabularyResponse(BaseModel):
    """Response model for vocabulary analysis."""
    vocabulary: List[VocabularyEntryOut]
    total: int


class LearningMaterialResponse(BaseModel):
    """Response model for whole-document processing."""
    english_level: str
    paragraphs: List[ParagraphOut]
    vocabulary: List[VocabularyEntryOut]
    total_paragraphs: int
    total_sentences: int
    processing_time_ms: int = Field(ge=0, description="Wall-clock processing time")


class ErrorResponse(BaseModel):
    """Differentiated error body."""
    code: str
    message: str
    error_type: Optional[str] = None
    suggestion: Optional[str] = None
    action: Optional[str] = None
