"""FastAPI routes for interview analysis and provider administration."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from analysis.service import AIAnalysisService, create_service
from analysis.types import AnalysisValidationError
from api.schemas import EnableResp, ErrorResp, GenerateQuestionsReq, GenerateQuestionsResp, ProviderStatus
from config.providers import ProviderId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_service: Optional[AIAnalysisService] = None


def get_service() -> AIAnalysisService:
    """Process-wide service instance; tests override this dependency."""

    global _service
    if _service is None:
        _service = create_service()
    return _service


def set_service(service: Optional[AIAnalysisService]) -> None:
    global _service
    _service = service


@router.post("/interviews/analyze", responses={400: {"model": ErrorResp}})
async def analyze_interview(
    payload: Dict[str, Any],
    service: AIAnalysisService = Depends(get_service),
) -> Any:
    try:
        analysis = await service.analyze_interview(payload)
    except AnalysisValidationError as exc:
        return JSONResponse(
            status_code=400,
            content=ErrorResp(error="Invalid analysis request", details=exc.messages).model_dump(),
        )
    return analysis.model_dump(by_alias=True, mode="json")


@router.post("/interviews/generate-questions", response_model=GenerateQuestionsResp, response_model_by_alias=True)
async def generate_questions(
    payload: GenerateQuestionsReq,
    service: AIAnalysisService = Depends(get_service),
) -> GenerateQuestionsResp:
    if payload.skills:
        questions = await service.generate_skill_based_questions(
            payload.skills,
            payload.job_description,
            payload.difficulty,
            payload.count,
            provider=payload.provider,
        )
    elif payload.job_title:
        questions = await service.generate_questions_from_job_description(
            payload.job_title,
            payload.job_description,
            payload.requirements,
            payload.experience_level,
        )
    else:
        raise HTTPException(status_code=400, detail="Either skills or jobTitle is required.")
    return GenerateQuestionsResp(questions=questions)


@router.get("/providers", response_model=List[ProviderStatus], response_model_by_alias=True)
def list_providers(service: AIAnalysisService = Depends(get_service)) -> List[ProviderStatus]:
    return [ProviderStatus.model_validate(item) for item in service.provider_status()]


@router.post("/providers/{provider_id}/enable", response_model=EnableResp, response_model_by_alias=True)
def enable_provider(provider_id: str, service: AIAnalysisService = Depends(get_service)) -> EnableResp:
    try:
        pid = ProviderId(provider_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown provider: {provider_id}") from exc
    changed = service.enable_provider(pid)
    enabled = service.registry.is_enabled(pid)
    logger.info("Enable request for %s (changed=%s)", pid.value, changed)
    return EnableResp(id=pid.value, changed=changed, status="enabled" if enabled else "disabled")
