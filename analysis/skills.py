"""Skill grouping and per-skill assessments."""
from __future__ import annotations

import math
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Optional, Sequence

from analysis.prompts import build_skill_prompt, score_band
from analysis.types import ScoredQuestionAnswer, SkillAssessment
from config.providers import ProviderConfig
from llm_gateway import call_with_fallback, extract_object
from observability import log_event
from providers.clients import ProviderClient
from services.rate_limiter import RateLimiter

DEFAULT_SKILL = "general"
DEFAULT_STRENGTHS = ["Provided relevant answers"]
DEFAULT_IMPROVEMENTS = ["Could improve depth of knowledge"]
MAX_LIST_ITEMS = 5


def mean_score(scores: Iterable[int]) -> int:
    """Exact arithmetic mean rounded half up; 0 for an empty input."""

    values = list(scores)
    if not values:
        return 0
    mean = Fraction(sum(values), len(values))
    return math.floor(mean + Fraction(1, 2))


def group_by_skill(scored: Sequence[ScoredQuestionAnswer]) -> Dict[str, List[ScoredQuestionAnswer]]:
    """Stable partition by skill tag in first-seen order; untagged answers go to ``general``."""

    groups: Dict[str, List[ScoredQuestionAnswer]] = {}
    for qa in scored:
        groups.setdefault(qa.skill_tag or DEFAULT_SKILL, []).append(qa)
    return groups


def _string_list(raw: Any) -> Optional[List[str]]:
    if isinstance(raw, str) and raw.strip():
        return [raw.strip()]
    if isinstance(raw, list):
        items = [str(item).strip() for item in raw if isinstance(item, (str, int, float)) and str(item).strip()]
        return items[:MAX_LIST_ITEMS] or None
    return None


def template_assessment(skill: str, score: int) -> SkillAssessment:
    """Assessment synthesized from the numeric score alone."""

    band = score_band(score)
    return SkillAssessment(
        skill=skill,
        score=score,
        feedback=(
            f"The candidate demonstrated {'good' if score >= 70 else 'some'} knowledge in {skill} "
            f"({band} range, {score}/100)."
        ),
        strengths=list(DEFAULT_STRENGTHS),
        improvements=list(DEFAULT_IMPROVEMENTS),
    )


def parse_skill_payload(text: str) -> Optional[Dict[str, Any]]:
    payload = extract_object(text)
    if payload is None:
        return None
    feedback = payload.get("feedback")
    strengths = _string_list(payload.get("strengths"))
    improvements = _string_list(payload.get("improvements"))
    if not (isinstance(feedback, str) and feedback.strip()) and strengths is None and improvements is None:
        return None
    return {
        "feedback": feedback.strip() if isinstance(feedback, str) and feedback.strip() else None,
        "strengths": strengths,
        "improvements": improvements,
    }


async def assess_skill(
    skill: str,
    group: Sequence[ScoredQuestionAnswer],
    client: Optional[ProviderClient],
    *,
    config: ProviderConfig,
    limiter: Optional[RateLimiter] = None,
    session_id: str = "-",
    max_tokens: Optional[int] = None,
) -> SkillAssessment:
    score = mean_score(qa.score for qa in group)
    fallback = template_assessment(skill, score)
    if client is None:
        return fallback

    parsed = await call_with_fallback(
        client,
        build_skill_prompt(skill, group),
        parse_skill_payload,
        None,
        config=config,
        limiter=limiter,
        label="assess_skill",
        session_id=session_id,
        max_tokens=max_tokens,
    )
    if parsed is None:
        return fallback
    return SkillAssessment(
        skill=skill,
        score=score,
        feedback=parsed["feedback"] or fallback.feedback,
        strengths=parsed["strengths"] or fallback.strengths,
        improvements=parsed["improvements"] or fallback.improvements,
    )


async def generate_skill_assessments(
    groups: Dict[str, List[ScoredQuestionAnswer]],
    client: Optional[ProviderClient],
    *,
    config: ProviderConfig,
    limiter: Optional[RateLimiter] = None,
    session_id: str = "-",
    max_tokens: Optional[int] = None,
) -> List[SkillAssessment]:
    """One assessment per skill group, in group order."""

    assessments: List[SkillAssessment] = []
    for skill, group in groups.items():
        assessment = await assess_skill(
            skill,
            group,
            client,
            config=config,
            limiter=limiter,
            session_id=session_id,
            max_tokens=max_tokens,
        )
        log_event(
            "analysis.skill_assessed",
            session_id,
            provider=config.id.value,
            skill=skill,
            score=assessment.score,
        )
        assessments.append(assessment)
    return assessments


__all__ = [
    "DEFAULT_SKILL",
    "assess_skill",
    "generate_skill_assessments",
    "group_by_skill",
    "mean_score",
    "parse_skill_payload",
    "template_assessment",
]
