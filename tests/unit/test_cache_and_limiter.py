import asyncio

import pytest

from analysis.types import AnalysisRequest
from config.providers import ProviderId
from services.cache import AnalysisCache
from services.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


def _request(answer: str = "A1", session: str = "s-1") -> AnalysisRequest:
    return AnalysisRequest.model_validate(
        {
            "sessionId": session,
            "candidateName": "Ada",
            "jobTitle": "Engineer",
            "questionAnswers": [
                {"questionId": "q1", "question": "Q1", "answer": answer, "questionType": "technical", "skillTag": "x"}
            ],
            "skills": ["x"],
        }
    )


def test_cache_key_depends_on_answers_and_provider():
    base = AnalysisCache.make_key(_request(), ProviderId.GEMINI)
    assert base == AnalysisCache.make_key(_request(), ProviderId.GEMINI)
    assert base != AnalysisCache.make_key(_request(answer="A2"), ProviderId.GEMINI)
    assert base != AnalysisCache.make_key(_request(), ProviderId.MOCK)
    assert base != AnalysisCache.make_key(_request(session="s-2"), ProviderId.GEMINI)


def test_cache_ttl_expiry():
    clock = FakeClock()
    cache = AnalysisCache(ttl_s=300, clock=clock)
    marker = object()
    cache.put("k", marker)
    clock.now = 299.0
    assert cache.get("k") is marker
    clock.now = 300.0
    assert cache.get("k") is None
    assert "k" not in cache
    assert (cache.hits, cache.misses) == (1, 1)


def test_cache_evicts_oldest_when_full():
    cache = AnalysisCache(max_entries=2, clock=FakeClock())
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("c", 3)
    assert len(cache) == 2
    assert "a" not in cache
    assert cache.get("c") == 3


def test_limiter_rejects_bad_arguments():
    with pytest.raises(ValueError):
        RateLimiter(0, 60.0, 1)


def test_limiter_caps_concurrency():
    limiter = RateLimiter(100, 60.0, 2)

    async def work():
        async with limiter.slot():
            await asyncio.sleep(0.01)

    async def main():
        await asyncio.gather(*(work() for _ in range(6)))

    asyncio.run(main())
    assert limiter.peak_in_flight == 2
    assert limiter.total_acquired == 6
    assert limiter.in_flight == 0


def test_limiter_waits_for_window():
    clock = FakeClock()
    limiter = RateLimiter(2, 10.0, 5, clock=clock, sleep=clock.sleep)

    async def main():
        for _ in range(3):
            async with limiter.slot():
                pass

    asyncio.run(main())
    assert clock.sleeps == [10.0]
    assert limiter.total_acquired == 3


def test_limiter_survives_new_event_loops():
    limiter = RateLimiter(10, 60.0, 1)

    async def once():
        async with limiter.slot():
            return True

    assert asyncio.run(once())
    assert asyncio.run(once())


def test_cache_key_depends_on_output_shaping_options():
    plain = _request()
    detailed = plain.model_copy(update={"options": plain.options.model_copy(update={"detailed": True})})
    with_transcript = plain.model_copy(
        update={"options": plain.options.model_copy(update={"include_transcript": True})}
    )
    longer = plain.model_copy(update={"options": plain.options.model_copy(update={"max_tokens": 500})})
    base = AnalysisCache.make_key(plain, ProviderId.GEMINI)
    assert base != AnalysisCache.make_key(detailed, ProviderId.GEMINI)
    assert base != AnalysisCache.make_key(with_transcript, ProviderId.GEMINI)
    assert base == AnalysisCache.make_key(longer, ProviderId.GEMINI)
