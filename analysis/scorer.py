"""Per-answer scoring with call-level fallback and batched dispatch."""
from __future__ import annotations

import asyncio
import math
from typing import Any, Dict, List, Optional, Sequence

from analysis.prompts import build_score_prompt
from analysis.types import QuestionAnswer, ScoredQuestionAnswer
from config.providers import ProviderConfig
from llm_gateway import call_with_fallback, extract_object
from observability import log_event
from providers.clients import ProviderClient
from services.rate_limiter import RateLimiter

NEUTRAL_SCORE = 50
DEFAULT_BATCH_SIZE = 3


def clamp_score(value: float) -> int:
    """Round to the nearest integer (half up) and clamp into [0, 100]."""

    return int(max(0, min(100, math.floor(float(value) + 0.5))))


def coerce_score(raw: Any) -> Optional[int]:
    """Turn an LLM ``score`` field into an int in [0, 100]; ``None`` when unusable."""

    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str):
        try:
            number = float(raw.strip().rstrip("%").split("/")[0])
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return clamp_score(number)


def parse_score_payload(text: str) -> Optional[Dict[str, Any]]:
    """Extract ``score`` (required) and ``feedback`` (optional) from provider text."""

    payload = extract_object(text)
    if payload is None:
        return None
    score = coerce_score(payload.get("score"))
    if score is None:
        return None
    feedback = payload.get("feedback")
    return {
        "score": score,
        "feedback": feedback.strip() if isinstance(feedback, str) and feedback.strip() else None,
    }


async def score_answer(
    qa: QuestionAnswer,
    client: Optional[ProviderClient],
    *,
    config: ProviderConfig,
    limiter: Optional[RateLimiter] = None,
    session_id: str = "-",
    neutral_score: int = NEUTRAL_SCORE,
    keep_feedback: bool = False,
    max_tokens: Optional[int] = None,
) -> ScoredQuestionAnswer:
    """Score one answer; any provider failure yields the neutral score instead of an error."""

    neutral = {"score": neutral_score, "feedback": None}
    result = await call_with_fallback(
        client,
        build_score_prompt(qa),
        parse_score_payload,
        neutral,
        config=config,
        limiter=limiter,
        label="score_answer",
        session_id=session_id,
        max_tokens=max_tokens,
    )
    log_event(
        "analysis.answer_scored",
        session_id,
        provider=config.id.value,
        question_id=qa.question_id,
        score=result["score"],
        outcome="fallback" if result is neutral else "ok",
    )
    return ScoredQuestionAnswer(
        **qa.model_dump(),
        score=result["score"],
        feedback=result["feedback"] if keep_feedback else None,
    )


async def score_answers(
    qas: Sequence[QuestionAnswer],
    client: Optional[ProviderClient],
    *,
    config: ProviderConfig,
    limiter: Optional[RateLimiter] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    session_id: str = "-",
    neutral_score: int = NEUTRAL_SCORE,
    keep_feedback: bool = False,
    max_tokens: Optional[int] = None,
) -> List[ScoredQuestionAnswer]:
    """Score answers in sequential fixed-size batches, parallel within each batch.

    The result is in input order whatever order the calls finish in.
    """

    size = max(1, int(batch_size))
    scored: List[ScoredQuestionAnswer] = []
    for start in range(0, len(qas), size):
        batch = qas[start : start + size]
        results = await asyncio.gather(
            *(
                score_answer(
                    qa,
                    client,
                    config=config,
                    limiter=limiter,
                    session_id=session_id,
                    neutral_score=neutral_score,
                    keep_feedback=keep_feedback,
                    max_tokens=max_tokens,
                )
                for qa in batch
            )
        )
        scored.extend(results)
    return scored


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "NEUTRAL_SCORE",
    "clamp_score",
    "coerce_score",
    "parse_score_payload",
    "score_answer",
    "score_answers",
]
