import asyncio
import json

from analysis.questions import (
    difficulty_for_level,
    generate_questions_from_job_description,
    generate_skill_based_questions,
    mock_questions,
    parse_questions_payload,
)
from analysis.transcripts import NO_ANSWER, build_question_answers
from config.providers import DEFAULT_PROVIDERS, ProviderId
from providers.clients import ProviderError
from providers.mock import MockClient

MOCK_CONFIG = DEFAULT_PROVIDERS[ProviderId.MOCK]


def test_mock_bank_respects_difficulty():
    beginner = mock_questions(["react"], "beginner", 20)
    advanced = mock_questions(["react"], "advanced", 20)
    assert beginner and all(q.difficulty != "advanced" for q in beginner)
    assert advanced and all(q.difficulty != "beginner" for q in advanced)
    assert len(mock_questions(["react"], "intermediate", 3)) == 3


def test_mock_bank_uses_primary_skill_and_title():
    questions = mock_questions(["react"], "intermediate", 3, job_title="UI Engineer")
    assert "UI Engineer" in questions[0].question_text
    assert questions[1].skill_tag == "react"


def test_parse_questions_drops_incomplete_records():
    text = "Here you go:\n" + json.dumps(
        [
            {"questionText": "Why React?", "type": "technical", "difficulty": "beginner", "skillTag": "react"},
            {"questionText": "No type", "difficulty": "beginner", "skillTag": "react"},
            {"questionText": "Bad type", "type": "trivia", "difficulty": "beginner", "skillTag": "react"},
        ]
    )
    parsed = parse_questions_payload(text)
    assert [q.question_text for q in parsed] == ["Why React?"]
    assert parse_questions_payload('{"questions": []}') is None
    assert parse_questions_payload("nothing") is None


def test_provider_questions_used_and_trimmed(scripted, fast_config):
    records = [
        {"questionText": f"Q{i}", "type": "behavioral", "difficulty": "intermediate", "skillTag": "teamwork"}
        for i in range(4)
    ]
    client = scripted(lambda prompt: json.dumps(records))
    questions = asyncio.run(
        generate_skill_based_questions(["teamwork"], "Team lead", "intermediate", client, config=fast_config, count=2)
    )
    assert [q.question_text for q in questions] == ["Q0", "Q1"]
    assert "teamwork" in client.prompts[0]


def test_provider_failure_falls_back_to_bank(scripted, fast_config):
    client = scripted(lambda prompt: ProviderError("down"))
    questions = asyncio.run(
        generate_skill_based_questions(["go"], "Backend", "advanced", client, config=fast_config, count=3)
    )
    assert questions == mock_questions(["go"], "advanced", 3)


def test_mock_provider_short_circuits_to_bank():
    mock = MockClient()
    questions = asyncio.run(generate_skill_based_questions(["go"], "Backend", "beginner", mock, config=MOCK_CONFIG))
    assert mock.calls == 0
    assert len(questions) == 5


def test_job_description_mapping():
    assert difficulty_for_level("entry") == "beginner"
    assert difficulty_for_level("mid") == "intermediate"
    assert difficulty_for_level("senior") == "advanced"
    questions = asyncio.run(
        generate_questions_from_job_description("SRE", "Keep things up", [], "senior", None, config=MOCK_CONFIG)
    )
    assert questions and all(q.difficulty != "beginner" for q in questions)
    assert questions[0].skill_tag == "Problem Solving"


def test_build_question_answers_pairs_user_turns():
    questions = [
        {"id": "q1", "questionText": "Tell me about you", "questionType": "behavioral", "skillTag": "communication"},
        {"id": "q2", "questionText": "Explain CAP", "questionType": "technical", "skillTag": "systems", "difficulty": "advanced"},
    ]
    transcript = [
        {"questionId": "q1", "speaker": "assistant", "text": "Tell me about you"},
        {"questionId": "q1", "speaker": "user", "text": "I build things."},
        {"questionId": "q1", "speaker": "user", "text": "Mostly APIs."},
        {"speaker": "user", "text": "Hello!"},
    ]
    pairs = build_question_answers(questions, transcript)
    assert [p.question_id for p in pairs] == ["q1", "q2"]
    assert pairs[0].answer == "I build things. Mostly APIs."
    assert pairs[1].answer == NO_ANSWER
    assert pairs[1].difficulty == "advanced"
