"""
Learning-material API routes.

Orchestration failures propagate to the app-level handler, which maps
them onto differentiated HTTP statuses.
"""
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from api.models.requests import (
    ExplanationsRequest,
    ParagraphsRequest,
    ProcessDocumentRequest,
    SentenceInput,
    SplitSentencesRequest,
    VocabularyRequest,
)
from api.models.responses import (
    LearningMaterialResponse,
    ParagraphsResponse,
    SentencesResponse,
    VocabularyResponse,
)
from core.config import ENGLISH_LEVELS
from core.pipeline import LearningMaterialPipeline, pipeline
from models.text_models import Sentence
from services.processing.transcriber import SUPPORTED_SOURCE_TYPES

router = APIRouter()


def get_pipeline() -> LearningMaterialPipeline:
    return pipeline


def _check_level(english_level: str) -> None:
    if english_level not in ENGLISH_LEVELS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported English level: {english_level}. "
                   f"Expected one of: {', '.join(ENGLISH_LEVELS)}",
        )


def _to_sentences(items: List[SentenceInput]) -> List[Sentence]:
    return [Sentence(id=item.id, text=item.text) for item in items]


@router.post("/sentences", response_model=SentencesResponse)
async def split_sentences(
    request: SplitSentencesRequest,
    service: LearningMaterialPipeline = Depends(get_pipeline),
):
    """Split text into sentences."""
    sentences = await service.split_sentences(request.text, client_id=request.client_id)
    return SentencesResponse(sentences=[asdict(s) for s in sentences], total=len(sentences))


@router.post("/paragraphs", response_model=ParagraphsResponse)
async def generate_paragraphs(
    request: ParagraphsRequest,
    service: LearningMaterialPipeline = Depends(get_pipeline),
):
    """Group sentences into titled paragraphs."""
    _check_level(request.english_level)
    paragraphs = await service.generate_paragraphs_with_titles(
        _to_sentences(request.sentences), request.english_level, client_id=request.client_id
    )
    return ParagraphsResponse(paragraphs=[p.to_dict() for p in paragraphs], total=len(paragraphs))


@router.post("/explanations", response_model=SentencesResponse)
async def generate_explanations(
    request: ExplanationsRequest,
    service: LearningMaterialPipeline = Depends(get_pipeline),
):
    """Explain each sentence."""
    _check_level(request.english_level)
    explained = await service.generate_sentence_explanations(
        _to_sentences(request.sentences),
        request.english_level,
        client_id=request.client_id,
        batch_size=request.batch_size,
    )
    return SentencesResponse(sentences=[asdict(s) for s in explained], total=len(explained))


@router.post("/vocabulary", response_model=VocabularyResponse)
async def generate_vocabulary(
    request: VocabularyRequest,
    service: LearningMaterialPipeline = Depends(get_pipeline),
):
    """Extract key vocabulary from text."""
    _check_level(request.english_level)
    vocabulary = await service.generate_vocabulary_analysis(
        request.text, request.english_level, client_id=request.client_id
    )
    return VocabularyResponse(vocabulary=[v.to_dict() for v in vocabulary], total=len(vocabulary))


@router.post("/process", response_model=LearningMaterialResponse)
async def process_document(
    request: ProcessDocumentRequest,
    service: LearningMaterialPipeline = Depends(get_pipeline),
):
    """Run the complete pipeline on one document."""
    _check_level(request.english_level)
    if request.source_type.lower() not in SUPPORTED_SOURCE_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported source type: {request.source_type}",
        )

    material = await service.process_document(
        request.content,
        request.english_level,
        client_id=request.client_id,
        source_type=request.source_type,
    )
    return LearningMaterialResponse(**material.to_dict())
