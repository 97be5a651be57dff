"""Overall analysis synthesis from per-answer scores and skill assessments."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from analysis.prompts import build_overall_prompt, score_band
from analysis.skills import mean_score
from analysis.types import AnalysisRequest, InterviewAnalysis, ScoredQuestionAnswer, SkillAssessment
from config.providers import ProviderConfig
from llm_gateway import call_with_fallback, extract_object
from providers.clients import ProviderClient
from services.rate_limiter import RateLimiter

NARRATIVE_FIELDS = ("summary", "strengths", "areasForImprovement", "recommendations")
MAX_NARRATIVE_ITEMS = 5


def _narrative(raw: Any) -> Optional[str]:
    if isinstance(raw, str):
        return raw.strip() or None
    if isinstance(raw, list):
        items = [str(item).strip() for item in raw[:MAX_NARRATIVE_ITEMS] if str(item).strip()]
        return "\n".join(items) or None
    return None


def parse_overall_payload(text: str) -> Optional[Dict[str, Optional[str]]]:
    payload = extract_object(text)
    if payload is None:
        return None
    parsed = {name: _narrative(payload.get(name)) for name in NARRATIVE_FIELDS}
    if all(value is None for value in parsed.values()):
        return None
    return parsed


def template_narrative(candidate_name: str, job_title: str, overall_score: int) -> Dict[str, str]:
    """Deterministic narrative used whenever the provider gives nothing usable."""

    band = score_band(overall_score)
    return {
        "summary": (
            f"{candidate_name} scored {overall_score}/100 in the interview for {job_title}, "
            f"which falls in the {band} range."
        ),
        "strengths": f"{candidate_name} demonstrated some skills relevant to the {job_title} role.",
        "areasForImprovement": (
            f"{candidate_name} could strengthen technical depth and support answers with more concrete examples."
        ),
        "recommendations": (
            f"Practice more {job_title} interview questions and prepare detailed examples from past experience."
        ),
    }


def type_scores(scored: Sequence[ScoredQuestionAnswer]) -> Dict[str, Optional[int]]:
    """Rounded mean per question type; ``None`` for types with no questions."""

    result: Dict[str, Optional[int]] = {}
    for question_type in ("technical", "behavioral", "situational"):
        values = [qa.score for qa in scored if qa.question_type == question_type]
        result[question_type] = mean_score(values) if values else None
    return result


async def synthesize(
    request: AnalysisRequest,
    scored: List[ScoredQuestionAnswer],
    skill_assessments: List[SkillAssessment],
    client: Optional[ProviderClient],
    *,
    config: ProviderConfig,
    limiter: Optional[RateLimiter] = None,
) -> InterviewAnalysis:
    """Build the final analysis; the overall score weights every answer equally."""

    overall_score = mean_score(qa.score for qa in scored)
    template = template_narrative(request.candidate_name, request.job_title, overall_score)
    parsed: Optional[Dict[str, Optional[str]]] = None
    if client is not None:
        prompt = build_overall_prompt(
            candidate_name=request.candidate_name,
            job_title=request.job_title,
            overall_score=overall_score,
            skill_assessments=skill_assessments,
            job_description=request.job_description,
            transcript=request.transcript if request.options.include_transcript else None,
        )
        parsed = await call_with_fallback(
            client,
            prompt,
            parse_overall_payload,
            None,
            config=config,
            limiter=limiter,
            label="synthesize",
            session_id=request.session_id,
            max_tokens=request.options.max_tokens,
        )
    narrative = {name: (parsed or {}).get(name) or template[name] for name in NARRATIVE_FIELDS}
    by_type = type_scores(scored)

    return InterviewAnalysis(
        overall_score=overall_score,
        summary=narrative["summary"],
        strengths=narrative["strengths"],
        areas_for_improvement=narrative["areasForImprovement"],
        recommendations=narrative["recommendations"],
        skill_assessments=skill_assessments,
        question_answers=scored,
        provider=config.id,
        technical_score=by_type["technical"],
        behavioral_score=by_type["behavioral"],
        situational_score=by_type["situational"],
        timestamp=datetime.now(timezone.utc),
    )


__all__ = ["parse_overall_payload", "synthesize", "template_narrative", "type_scores"]
