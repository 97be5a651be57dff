from __future__ import annotations

import copy

from fastapi import FastAPI
from fastapi.testclient import TestClient

from analysis.service import AIAnalysisService
from api.routes import get_service, router
from config.providers import DEFAULT_PROVIDERS, ProviderId
from config.settings import Settings
from providers.mock import MockClient
from providers.registry import ProviderRegistry
from services.cache import AnalysisCache
from services.rate_limiter import RateLimiter

PAYLOAD = {
    "sessionId": "e2e-1",
    "candidateName": "Grace Hopper",
    "jobTitle": "Compiler Engineer",
    "questionAnswers": [
        {"questionId": "q1", "question": "What is a linker?", "answer": "It resolves symbols.",
         "questionType": "technical", "skillTag": "compilers"},
        {"questionId": "q2", "question": "Tell me about a team win.", "answer": "We shipped COBOL.",
         "questionType": "behavioral", "skillTag": "teamwork"},
    ],
    "skills": ["compilers", "teamwork"],
}


def _client() -> tuple[TestClient, AIAnalysisService]:
    registry = ProviderRegistry.from_settings(Settings(_env_file=None), DEFAULT_PROVIDERS)
    service = AIAnalysisService(
        registry,
        {ProviderId.MOCK: MockClient()},
        cache=AnalysisCache(),
        limiter=RateLimiter(100, 60.0, 10),
        settings=Settings(_env_file=None),
    )
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_service] = lambda: service
    return TestClient(app), service


def test_analyze_returns_camel_case_analysis():
    client, _ = _client()
    res = client.post("/api/interviews/analyze", json=PAYLOAD)
    assert res.status_code == 200
    body = res.json()
    assert body["provider"] == "mock"
    assert 0 <= body["overallScore"] <= 100
    assert [qa["questionId"] for qa in body["questionAnswers"]] == ["q1", "q2"]
    assert [sa["skill"] for sa in body["skillAssessments"]] == ["compilers", "teamwork"]
    assert body["areasForImprovement"]
    assert "timestamp" in body


def test_analyze_rejects_invalid_payload_with_400():
    client, _ = _client()
    bad = copy.deepcopy(PAYLOAD)
    bad["questionAnswers"][0]["questionId"] = ""
    res = client.post("/api/interviews/analyze", json=bad)
    assert res.status_code == 400
    assert res.json()["error"] == "Invalid analysis request"
    assert res.json()["details"]


def test_generate_questions_from_skills_and_job():
    client, _ = _client()
    res = client.post(
        "/api/interviews/generate-questions",
        json={"skills": ["python"], "jobDescription": "APIs", "difficulty": "beginner", "count": 2},
    )
    assert res.status_code == 200
    questions = res.json()["questions"]
    assert len(questions) == 2
    assert "questionText" in questions[0]

    res = client.post(
        "/api/interviews/generate-questions",
        json={"jobTitle": "SRE", "jobDescription": "On-call", "experienceLevel": "senior"},
    )
    assert res.status_code == 200
    assert all(q["difficulty"] != "beginner" for q in res.json()["questions"])

    res = client.post("/api/interviews/generate-questions", json={"jobDescription": "Nothing else"})
    assert res.status_code == 400


def test_provider_listing_and_enable():
    client, service = _client()
    res = client.get("/api/providers")
    assert res.status_code == 200
    listing = {item["id"]: item for item in res.json()}
    assert listing["mock"]["enabled"] is True
    assert listing["gemini"]["disabledReason"] == "missing credentials"

    res = client.post("/api/providers/gemini/enable")
    assert res.status_code == 200
    assert res.json() == {"id": "gemini", "changed": False, "status": "disabled"}

    assert client.post("/api/providers/unknown/enable").status_code == 404
