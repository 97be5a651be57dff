from __future__ import annotations  # Re-export analysis public API

from .questions import GeneratedQuestion, mock_questions
from .service import AIAnalysisService, create_service, validate_request
from .transcripts import build_question_answers
from .types import (
    AnalysisOptions,
    AnalysisRequest,
    AnalysisValidationError,
    InterviewAnalysis,
    QuestionAnswer,
    ScoredQuestionAnswer,
    SkillAssessment,
)

__all__ = [
    "AIAnalysisService",
    "AnalysisOptions",
    "AnalysisRequest",
    "AnalysisValidationError",
    "GeneratedQuestion",
    "InterviewAnalysis",
    "QuestionAnswer",
    "ScoredQuestionAnswer",
    "SkillAssessment",
    "build_question_answers",
    "create_service",
    "mock_questions",
    "validate_request",
]
