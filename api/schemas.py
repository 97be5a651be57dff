"""Pydantic schemas for the interview analysis API."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from analysis.questions import ExperienceLevel, GeneratedQuestion
from analysis.types import Difficulty


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateQuestionsReq(_Camel):
    """Either ``skills`` (skill-based) or ``job_title`` (job-description based) drives generation."""

    job_description: str = Field(min_length=1)
    skills: List[str] = Field(default_factory=list)
    difficulty: Difficulty = "intermediate"
    count: int = Field(default=5, ge=1, le=20)
    job_title: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    experience_level: ExperienceLevel = "mid"
    provider: Optional[str] = None


class GenerateQuestionsResp(_Camel):
    questions: List[GeneratedQuestion]


class ProviderStatus(_Camel):
    id: str
    enabled: bool
    priority: int
    max_retries: int
    timeout_s: float
    model: Optional[str] = None
    disabled_reason: Optional[str] = None


class EnableResp(_Camel):
    id: str
    changed: bool
    status: Literal["enabled", "disabled"]


class ErrorResp(BaseModel):
    error: str
    details: List[str] = Field(default_factory=list)
