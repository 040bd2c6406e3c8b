"""
Pydantic request models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class SentenceInput(BaseModel):
    """One sentence as sent by the client."""
    id: int = Field(..., ge=1, description="1-based sentence id")
    text: str = Field(..., min_length=1, description="Sentence text")


class SplitSentencesRequest(BaseModel):
    """Request model for sentence splitting."""
    text: str = Field(..., description="Text to split into sentences")
    client_id: Optional[str] = Field(default=None, description="Progress tracking key")


class ParagraphsRequest(BaseModel):
    """Request model for paragraph grouping and titles."""
    sentences: List[SentenceInput] = Field(..., description="Sentences to group")
    english_level: str = Field(default="CET-4", description="Target English level")
    client_id: Optional[str] = Field(default=None, description="Progress tracking key")


class ExplanationsRequest(BaseModel):
    """Request model for sentence explanations."""
    sentences: List[SentenceInput] = Field(..., description="Sentences to explain")
    english_level: str = Field(default="CET-4", description="Target English level")
    batch_size: Optional[int] = Field(default=None, ge=1, le=20, description="Sentences per request")
    client_id: Optional[str] = Field(default=None, description="Progress tracking key")


class VocabularyRequest(BaseModel):
    """Request model for vocabulary analysis."""
    text: str = Field(..., description="Text to analyze")
    english_level: str = Field(default="CET-4", description="Target English level")
    client_id: Optional[str] = Field(default=None, description="Progress tracking key")


class ProcessDocumentRequest(BaseModel):
    """Request model for whole-document processing."""
    content: str = Field(..., description="Raw document content")
    source_type: str = Field(default="txt", description="txt, srt, vtt or html")
    english_level: str = Field(default="CET-4", description="Target English level")
    client_id: Optional[str] = Field(default=None, description="Progress tracking key")
