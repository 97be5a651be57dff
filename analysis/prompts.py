from __future__ import annotations  # Prompt builders for every analysis stage

from textwrap import dedent
from typing import List, Optional, Sequence, Tuple

from analysis.types import QuestionAnswer, ScoredQuestionAnswer, SkillAssessment

# (lower bound, label, description) ordered from highest band down
SCORE_BANDS: Tuple[Tuple[int, str, str], ...] = (
    (90, "exceptional", "Exceptional answer that demonstrates expert knowledge"),
    (75, "strong", "Strong answer with good understanding"),
    (60, "adequate", "Adequate answer with some gaps"),
    (40, "basic", "Basic answer with significant gaps"),
    (0, "insufficient", "Insufficient or incorrect answer"),
)

TRANSCRIPT_EXCERPT_CHARS = 4000


def score_band(score: int) -> str:
    for lower, label, _ in SCORE_BANDS:
        if score >= lower:
            return label
    return SCORE_BANDS[-1][1]


def _rubric_lines() -> str:
    lines: List[str] = []
    upper = 100
    for lower, _, description in SCORE_BANDS:
        lines.append(f"- {lower}-{upper}: {description}")
        upper = lower - 1
    return "\n".join(lines)


def build_score_prompt(qa: QuestionAnswer) -> str:
    """Evaluation prompt for a single question/answer pair."""

    return dedent(
        """
        You are an expert interview assessor. Analyze this interview question and answer:

        Question: {question}
        Type: {question_type}
        Skill: {skill}
        Difficulty: {difficulty}
        Answer: {answer}

        Provide analysis in JSON format with these fields only:
        {{
          "score": number (0-100),
          "strengths": ["strength1", "strength2"],
          "improvements": ["improvement1", "improvement2"],
          "feedback": "detailed feedback (2-3 sentences)"
        }}

        Scoring guidelines:
        {rubric}

        Return ONLY valid JSON without any additional text.
        """
    ).strip().format(
        question=qa.question,
        question_type=qa.question_type,
        skill=qa.skill_tag,
        difficulty=qa.difficulty or "intermediate",
        answer=qa.answer,
        rubric=_rubric_lines(),
    )


def build_skill_prompt(skill: str, group: Sequence[ScoredQuestionAnswer]) -> str:
    """Qualitative feedback prompt for all answers sharing one skill tag."""

    questions_text = "\n\n".join(
        f"Question: {qa.question}\nAnswer: {qa.answer}\nScore: {qa.score}/100" for qa in group
    )
    return dedent(
        """
        You are an expert interview assessor. Analyze these interview questions and answers for the skill "{skill}":

        {questions}

        Provide a skill assessment in JSON format with these fields only:
        {{
          "feedback": "detailed feedback on the candidate's performance in this skill area (2-3 sentences)",
          "strengths": ["strength1", "strength2", "strength3"],
          "improvements": ["improvement1", "improvement2"]
        }}

        Return ONLY valid JSON without any additional text.
        """
    ).strip().format(skill=skill, questions=questions_text)


def build_overall_prompt(
    *,
    candidate_name: str,
    job_title: str,
    overall_score: int,
    skill_assessments: Sequence[SkillAssessment],
    job_description: Optional[str] = None,
    transcript: Optional[str] = None,
) -> str:
    """Synthesis prompt combining the numeric score with the per-skill digest."""

    digest = "\n\n".join(
        f"Skill: {sa.skill}\nScore: {sa.score}/100\nFeedback: {sa.feedback}" for sa in skill_assessments
    )
    context: List[str] = []
    if job_description:
        context.append(f"Job Description: {job_description}")
    if transcript:
        context.append(f"Transcript excerpt:\n{transcript[:TRANSCRIPT_EXCERPT_CHARS]}")
    context_block = "\n\n".join(context)
    return dedent(
        """
        You are an expert interview assessor. Generate a comprehensive interview analysis for {name}
        who interviewed for a {job_title} position.

        {context}

        Overall Score: {score}/100

        Skill Assessments:
        {digest}

        Provide an interview analysis in JSON format with these fields only:
        {{
          "summary": "overall assessment of the candidate's performance (3-4 sentences)",
          "strengths": "3-4 key strengths demonstrated during the interview",
          "areasForImprovement": "3-4 specific areas where the candidate could improve",
          "recommendations": "2-3 actionable recommendations for the candidate"
        }}

        Return ONLY valid JSON without any additional text.
        """
    ).strip().format(
        name=candidate_name,
        job_title=job_title,
        context=context_block,
        score=overall_score,
        digest=digest,
    )


def build_questions_prompt(
    *,
    skills: Sequence[str],
    job_description: str,
    difficulty: str,
    count: int,
) -> str:
    return dedent(
        """
        Generate {count} interview questions based on:

        REQUIRED SKILLS: {skills}
        JOB DESCRIPTION: {job_description}
        DIFFICULTY: {difficulty}

        Create a balanced mix of technical, behavioral, and situational questions.
        Each question should target specific skills and be appropriate for {difficulty} level.

        Return JSON array:
        [
          {{
            "questionText": "question text",
            "type": "technical" | "behavioral" | "situational",
            "difficulty": "{difficulty}",
            "skillTag": "primary skill tested",
            "expectedAnswer": "guidance for ideal answer",
            "timeLimit": number (in seconds),
            "followUpQuestions": ["optional follow-up 1", "optional follow-up 2"]
          }}
        ]
        """
    ).strip().format(
        count=count,
        skills=", ".join(skills),
        job_description=job_description,
        difficulty=difficulty,
    )


__all__ = [
    "SCORE_BANDS",
    "build_overall_prompt",
    "build_questions_prompt",
    "build_score_prompt",
    "build_skill_prompt",
    "score_band",
]
