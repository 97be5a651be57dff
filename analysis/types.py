"""Shared type definitions for interview analysis."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from config.providers import ProviderId

QuestionType = Literal["technical", "behavioral", "situational"]
Difficulty = Literal["beginner", "intermediate", "advanced"]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _require_text(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} is required")
    return value


class QuestionAnswer(_Model):
    # instances handed back in are validated again, so later mutation cannot skip the checks
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, revalidate_instances="always")

    question_id: str
    question: str
    answer: str
    question_type: QuestionType
    skill_tag: str
    difficulty: Optional[Difficulty] = None
    time_spent: Optional[int] = Field(default=None, ge=0)

    @field_validator("question_id", "question", "answer", "skill_tag")
    @classmethod
    def _non_blank(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, to_camel(info.field_name))


class ScoredQuestionAnswer(QuestionAnswer):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, revalidate_instances="never"
    )

    score: int = Field(ge=0, le=100)
    feedback: Optional[str] = None


class SkillAssessment(_Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    skill: str
    score: int = Field(ge=0, le=100)
    feedback: str
    strengths: Tuple[str, ...] = ()
    improvements: Tuple[str, ...] = ()


class AnalysisOptions(_Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, revalidate_instances="always")

    provider: Optional[ProviderId] = None
    detailed: bool = False
    include_transcript: bool = False
    max_tokens: Optional[int] = Field(default=None, ge=1)


class AnalysisRequest(_Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, revalidate_instances="always")

    session_id: str
    candidate_name: str
    job_title: str
    question_answers: List[QuestionAnswer] = Field(min_length=1)
    skills: List[str] = Field(min_length=1)
    job_description: Optional[str] = None
    transcript: Optional[str] = None
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)

    @field_validator("session_id", "candidate_name", "job_title")
    @classmethod
    def _non_blank(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, to_camel(info.field_name))

    @field_validator("skills")
    @classmethod
    def _skills_non_blank(cls, value: List[str]) -> List[str]:
        if any(not isinstance(skill, str) or not skill.strip() for skill in value):
            raise ValueError("skills must be non-empty strings")
        return value

    @model_validator(mode="after")
    def _unique_question_ids(self) -> "AnalysisRequest":
        seen: set[str] = set()
        for qa in self.question_answers:
            if qa.question_id in seen:
                raise ValueError(f"duplicate questionId: {qa.question_id}")
            seen.add(qa.question_id)
        return self


class InterviewAnalysis(_Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    overall_score: int = Field(ge=0, le=100)
    summary: str
    strengths: str
    areas_for_improvement: str
    recommendations: str
    skill_assessments: Tuple[SkillAssessment, ...]
    question_answers: Tuple[ScoredQuestionAnswer, ...]
    provider: ProviderId
    technical_score: Optional[int] = Field(default=None, ge=0, le=100)
    behavioral_score: Optional[int] = Field(default=None, ge=0, le=100)
    situational_score: Optional[int] = Field(default=None, ge=0, le=100)
    timestamp: datetime


class AnalysisValidationError(ValueError):
    """Raised when an analysis request is malformed; carries every problem found."""

    def __init__(self, messages: List[str]) -> None:
        self.messages = list(messages) or ["invalid analysis request"]
        super().__init__("Invalid analysis request: " + "; ".join(self.messages))


__all__ = [
    "AnalysisOptions",
    "AnalysisRequest",
    "AnalysisValidationError",
    "Difficulty",
    "InterviewAnalysis",
    "QuestionAnswer",
    "QuestionType",
    "ScoredQuestionAnswer",
    "SkillAssessment",
]
