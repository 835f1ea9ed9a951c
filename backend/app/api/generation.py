"""Content generation endpoints. Each composes its prompt from stored templates and calls the model."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.prompts import to_http_error
from app.core.exceptions import GenerationError, PromptEngineError
from app.models.generation import (
    ComprehensiveRequest,
    GenerationResponse,
    ParagraphRequest,
    PassageRequest,
    VocabularyRequest,
)
from app.services.ai import AIService, get_ai_service
from app.services.content_prompts import (
    build_comprehensive_prompt,
    build_paragraph_prompt,
    build_passage_prompt,
    build_vocabulary_prompt,
)
from app.services.prompt_service import PromptService, get_prompt_service
from app.services.telemetry import instrument

router = APIRouter(prefix="/api/generate", tags=["generation"])

logger = logging.getLogger(__name__)


def _run(ai: AIService, prompt: str, model: str) -> GenerationResponse:
    try:
        result = ai.generate(prompt, model)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return GenerationResponse(prompt=prompt, result=result)


@router.post("/passage", response_model=GenerationResponse)
@instrument(route="/api/generate/passage")
def generate_passage(
    req: PassageRequest,
    service: PromptService = Depends(get_prompt_service),
    ai: AIService = Depends(get_ai_service),
):
    try:
        prompt = build_passage_prompt(
            service,
            division=req.division,
            length=req.length,
            subject=req.subject,
            grade=req.grade,
            area=req.area,
            maintopic=req.maintopic,
            subtopic=req.subtopic,
            keyword=req.keyword,
            text_type=req.text_type,
        )
    except PromptEngineError as e:
        raise to_http_error(e)
    return _run(ai, prompt, req.model)


@router.post("/vocabulary", response_model=GenerationResponse)
@instrument(route="/api/generate/vocabulary")
def generate_vocabulary(
    req: VocabularyRequest,
    service: PromptService = Depends(get_prompt_service),
    ai: AIService = Depends(get_ai_service),
):
    try:
        prompt = build_vocabulary_prompt(
            service,
            term_name=req.term_name,
            term_description=req.term_description,
            passage=req.passage,
            division=req.division,
            question_type=req.question_type,
        )
    except PromptEngineError as e:
        raise to_http_error(e)
    return _run(ai, prompt, req.model)


@router.post("/paragraph", response_model=GenerationResponse)
@instrument(route="/api/generate/paragraph")
def generate_paragraph(
    req: ParagraphRequest,
    service: PromptService = Depends(get_prompt_service),
    ai: AIService = Depends(get_ai_service),
):
    try:
        prompt = build_paragraph_prompt(
            service,
            title=req.title,
            paragraph_text=req.paragraph_text,
            division=req.division,
            question_type=req.question_type,
            question_index=req.question_index,
        )
    except PromptEngineError as e:
        raise to_http_error(e)
    return _run(ai, prompt, req.model)


@router.post("/comprehensive", response_model=GenerationResponse)
@instrument(route="/api/generate/comprehensive")
def generate_comprehensive(
    req: ComprehensiveRequest,
    service: PromptService = Depends(get_prompt_service),
    ai: AIService = Depends(get_ai_service),
):
    try:
        prompt = build_comprehensive_prompt(
            service,
            passage=req.passage,
            division=req.division,
            question_type=req.question_type,
            question_count=req.question_count,
        )
    except PromptEngineError as e:
        raise to_http_error(e)
    return _run(ai, prompt, req.model)
