from __future__ import annotations  # Pairs stored interview questions with transcript turns

from typing import Any, Dict, Iterable, List, Mapping

from analysis.types import QuestionAnswer

NO_ANSWER = "No answer provided"
INTRO_QUESTION_ID = "intro"


def _get(record: Any, *names: str) -> Any:
    for name in names:
        if isinstance(record, Mapping):
            if name in record:
                return record[name]
        elif hasattr(record, name):
            return getattr(record, name)
    return None


def build_question_answers(
    questions: Iterable[Any],
    transcript_entries: Iterable[Any],
) -> List[QuestionAnswer]:
    """One ``QuestionAnswer`` per stored question, in question order.

    Transcript entries are grouped by ``questionId`` (``intro`` when absent);
    all ``user`` turns for a question are joined with a single space.
    """

    turns: Dict[str, List[str]] = {}
    for entry in transcript_entries:
        question_id = _get(entry, "questionId", "question_id") or INTRO_QUESTION_ID
        if _get(entry, "speaker") != "user":
            continue
        text = _get(entry, "text")
        if isinstance(text, str) and text.strip():
            turns.setdefault(str(question_id), []).append(text.strip())

    pairs: List[QuestionAnswer] = []
    for question in questions:
        question_id = str(_get(question, "id", "questionId", "question_id"))
        answer = " ".join(turns.get(question_id, []))
        pairs.append(
            QuestionAnswer(
                question_id=question_id,
                question=_get(question, "questionText", "question_text", "question"),
                question_type=_get(question, "questionType", "question_type", "type"),
                skill_tag=_get(question, "skillTag", "skill_tag") or "general",
                difficulty=_get(question, "difficulty"),
                answer=answer or NO_ANSWER,
            )
        )
    return pairs


__all__ = ["NO_ANSWER", "build_question_answers"]
