import asyncio
import re

import pytest

from analysis.scorer import clamp_score, coerce_score, parse_score_payload, score_answer, score_answers
from analysis.types import QuestionAnswer
from providers.clients import ProviderError


def _qa(qid: str, answer: str = "An answer", skill: str = "python") -> QuestionAnswer:
    return QuestionAnswer(
        question_id=qid,
        question=f"Question {qid}?",
        answer=answer,
        question_type="technical",
        skill_tag=skill,
    )


def _answer_of(prompt: str) -> str:
    return re.search(r"^Answer: (.*)$", prompt, re.MULTILINE).group(1)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (85, 85),
        (84.5, 85),
        ("72", 72),
        ("90%", 90),
        ("65/100", 65),
        (150, 100),
        (-3, 0),
        (True, None),
        (None, None),
        ("great", None),
        (float("nan"), None),
        ([80], None),
    ],
)
def test_coerce_score(raw, expected):
    assert coerce_score(raw) == expected


def test_clamp_rounds_half_up():
    assert clamp_score(49.5) == 50
    assert clamp_score(49.49) == 49


def test_parse_score_payload_variants():
    assert parse_score_payload('Result: {"score": 91, "feedback": " Clear. "}') == {"score": 91, "feedback": "Clear."}
    assert parse_score_payload('{"score": 70}') == {"score": 70, "feedback": None}
    assert parse_score_payload('{"feedback": "no score"}') is None
    assert parse_score_payload("not json") is None


def test_malformed_reply_scores_neutral(scripted, fast_config):
    client = scripted(lambda prompt: "I'd give it a B+")
    scored = asyncio.run(score_answer(_qa("q1"), client, config=fast_config))
    assert scored.score == 50
    assert scored.feedback is None
    assert client.calls == fast_config.max_retries + 1


def test_provider_error_scores_neutral(scripted, fast_config):
    client = scripted(lambda prompt: ProviderError("HTTP 503"))
    scored = asyncio.run(score_answer(_qa("q1"), client, config=fast_config, neutral_score=40))
    assert scored.score == 40


def test_feedback_kept_only_when_detailed(scripted, fast_config):
    client = scripted(lambda prompt: '{"score": 77, "feedback": "Good structure."}')
    plain = asyncio.run(score_answer(_qa("q1"), client, config=fast_config))
    detailed = asyncio.run(score_answer(_qa("q1"), client, config=fast_config, keep_feedback=True))
    assert plain.score == detailed.score == 77
    assert plain.feedback is None
    assert detailed.feedback == "Good structure."


def test_out_of_range_score_clamped(scripted, fast_config):
    client = scripted(lambda prompt: '{"score": 140}')
    assert asyncio.run(score_answer(_qa("q1"), client, config=fast_config)).score == 100


def test_order_preserved_when_calls_finish_out_of_order(scripted, fast_config):
    scores = {"a1": 10, "a2": 20, "a3": 30, "a4": 40, "a5": 50}
    # earlier answers take longer so completions arrive in reverse order
    delays = {"a1": 0.05, "a2": 0.04, "a3": 0.03, "a4": 0.02, "a5": 0.01}
    client = scripted(
        lambda prompt: f'{{"score": {scores[_answer_of(prompt)]}}}',
        delay=lambda prompt: delays[_answer_of(prompt)],
    )
    qas = [_qa(f"q{i}", answer=f"a{i}") for i in range(1, 6)]

    scored = asyncio.run(score_answers(qas, client, config=fast_config, batch_size=3))

    assert [s.question_id for s in scored] == ["q1", "q2", "q3", "q4", "q5"]
    assert [s.score for s in scored] == [10, 20, 30, 40, 50]


def test_batches_run_sequentially(scripted, fast_config):
    active = {"now": 0, "peak": 0}

    class Tracking:
        provider_id = fast_config.id

        async def generate(self, prompt, *, max_tokens=None):
            active["now"] += 1
            active["peak"] = max(active["peak"], active["now"])
            await asyncio.sleep(0.01)
            active["now"] -= 1
            return '{"score": 60}'

    qas = [_qa(f"q{i}") for i in range(7)]
    scored = asyncio.run(score_answers(qas, Tracking(), config=fast_config, batch_size=3))
    assert len(scored) == 7
    assert active["peak"] == 3


def test_one_failure_does_not_affect_siblings(scripted, fast_config):
    def handler(prompt):
        if _answer_of(prompt) == "bad":
            return ProviderError("boom")
        return '{"score": 88}'

    client = scripted(handler)
    qas = [_qa("q1", "good"), _qa("q2", "bad"), _qa("q3", "good")]
    scored = asyncio.run(score_answers(qas, client, config=fast_config))
    assert [s.score for s in scored] == [88, 50, 88]
