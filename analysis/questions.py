"""Interview question generation with a deterministic built-in fallback bank."""
from __future__ import annotations

from typing import List, Literal, Optional, Sequence

from pydantic import Field, ValidationError

from analysis.prompts import build_questions_prompt
from analysis.types import Difficulty, QuestionType, _Model
from config.providers import ProviderConfig, ProviderId
from llm_gateway import call_with_fallback, extract_json
from providers.clients import ProviderClient
from services.rate_limiter import RateLimiter

ExperienceLevel = Literal["entry", "mid", "senior"]

DEFAULT_REQUIREMENTS = ["Problem Solving", "Communication", "Technical Skills", "Teamwork"]


class GeneratedQuestion(_Model):
    question_text: str = Field(min_length=1)
    type: QuestionType
    difficulty: Difficulty
    skill_tag: str = Field(min_length=1)
    expected_answer: Optional[str] = None
    time_limit: Optional[int] = Field(default=None, ge=0)
    follow_up_questions: List[str] = Field(default_factory=list)


def _bank(skills: Sequence[str], job_title: Optional[str]) -> List[GeneratedQuestion]:
    primary = skills[0] if skills else None
    role = job_title or "this"
    raw = [
        {
            "question_text": f"Tell me about yourself and your experience relevant to the {role} position.",
            "type": "behavioral",
            "difficulty": "beginner",
            "skill_tag": "communication",
            "expected_answer": "Clear, concise professional summary highlighting relevant experience",
            "time_limit": 180,
        },
        {
            "question_text": f"Explain how you would approach {primary or 'a technical problem'} in a production environment.",
            "type": "technical",
            "difficulty": "intermediate",
            "skill_tag": primary or "technical-skills",
            "expected_answer": "Step-by-step approach with considerations for scale and reliability",
            "time_limit": 240,
        },
        {
            "question_text": "Describe a challenging project you worked on and how you overcame obstacles.",
            "type": "behavioral",
            "difficulty": "intermediate",
            "skill_tag": primary or "problem-solving",
            "expected_answer": "STAR method response with specific examples",
            "time_limit": 240,
            "follow_up_questions": ["What would you do differently?", "How did you measure success?"],
        },
        {
            "question_text": "How do you handle disagreements with team members?",
            "type": "behavioral",
            "difficulty": "intermediate",
            "skill_tag": "teamwork",
            "expected_answer": "Demonstrates conflict resolution and communication skills",
            "time_limit": 180,
        },
        {
            "question_text": "Explain your approach to debugging complex issues in production.",
            "type": "technical",
            "difficulty": "advanced",
            "skill_tag": "debugging",
            "expected_answer": "Systematic approach with tools and methodologies",
            "time_limit": 240,
        },
        {
            "question_text": "What are the key principles of clean code and how do you apply them?",
            "type": "technical",
            "difficulty": "intermediate",
            "skill_tag": "best-practices",
            "expected_answer": "SOLID principles, DRY, readability, maintainability",
            "time_limit": 180,
        },
        {
            "question_text": "How would you optimize a slow-performing database query?",
            "type": "technical",
            "difficulty": "advanced",
            "skill_tag": "database",
            "expected_answer": "Indexing, query optimization, caching strategies",
            "time_limit": 240,
        },
        {
            "question_text": "You discover a critical bug in production just before a major release. What do you do?",
            "type": "situational",
            "difficulty": "advanced",
            "skill_tag": "decision-making",
            "expected_answer": "Risk assessment, communication, rollback strategies",
            "time_limit": 180,
        },
        {
            "question_text": "How would you handle a situation where you need to learn a new technology quickly for a project?",
            "type": "situational",
            "difficulty": "intermediate",
            "skill_tag": "learning-agility",
            "expected_answer": "Learning strategies, resource utilization, time management",
            "time_limit": 180,
        },
    ]
    return [GeneratedQuestion(**item) for item in raw]


def mock_questions(
    skills: Sequence[str],
    difficulty: Difficulty,
    count: int,
    *,
    job_title: Optional[str] = None,
) -> List[GeneratedQuestion]:
    """Built-in questions; beginner sets skip advanced items and vice versa."""

    questions = _bank(skills, job_title)
    if difficulty == "beginner":
        questions = [q for q in questions if q.difficulty != "advanced"]
    elif difficulty == "advanced":
        questions = [q for q in questions if q.difficulty != "beginner"]
    return questions[: max(0, count)]


def parse_questions_payload(text: str) -> Optional[List[GeneratedQuestion]]:
    payload = extract_json(text, expect_list=True)
    if isinstance(payload, dict):
        payload = payload.get("questions")
    if not isinstance(payload, list):
        return None
    questions: List[GeneratedQuestion] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        try:
            questions.append(GeneratedQuestion.model_validate(item))
        except ValidationError:
            continue
    return questions or None


async def generate_skill_based_questions(
    skills: Sequence[str],
    job_description: str,
    difficulty: Difficulty,
    client: Optional[ProviderClient],
    *,
    config: ProviderConfig,
    count: int = 5,
    limiter: Optional[RateLimiter] = None,
    job_title: Optional[str] = None,
) -> List[GeneratedQuestion]:
    fallback = lambda: mock_questions(skills, difficulty, count, job_title=job_title)  # noqa: E731
    if config.id is ProviderId.MOCK:
        return fallback()
    questions = await call_with_fallback(
        client,
        build_questions_prompt(skills=skills, job_description=job_description, difficulty=difficulty, count=count),
        parse_questions_payload,
        fallback,
        config=config,
        limiter=limiter,
        label="generate_questions",
    )
    return questions[:count]


def difficulty_for_level(experience_level: ExperienceLevel) -> Difficulty:
    if experience_level == "entry":
        return "beginner"
    if experience_level == "senior":
        return "advanced"
    return "intermediate"


async def generate_questions_from_job_description(
    job_title: str,
    job_description: str,
    requirements: Sequence[str],
    experience_level: ExperienceLevel,
    client: Optional[ProviderClient],
    *,
    config: ProviderConfig,
    limiter: Optional[RateLimiter] = None,
) -> List[GeneratedQuestion]:
    skills = list(requirements) or list(DEFAULT_REQUIREMENTS)
    return await generate_skill_based_questions(
        skills,
        job_description,
        difficulty_for_level(experience_level),
        client,
        config=config,
        count=5,
        limiter=limiter,
        job_title=job_title,
    )


__all__ = [
    "DEFAULT_REQUIREMENTS",
    "GeneratedQuestion",
    "difficulty_for_level",
    "generate_questions_from_job_description",
    "generate_skill_based_questions",
    "mock_questions",
    "parse_questions_payload",
]
