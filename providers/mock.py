"""Deterministic offline provider used when no real backend is available."""
from __future__ import annotations

import hashlib
import json
import random
from typing import Optional

from config.providers import ProviderId

_STRENGTHS = [
    "Clear communication",
    "Relevant examples",
    "Structured reasoning",
    "Solid technical grounding",
    "Good awareness of trade-offs",
]

_IMPROVEMENTS = [
    "Add more concrete examples",
    "Explain reasoning in more depth",
    "Quantify the impact of past work",
    "Cover edge cases explicitly",
    "Keep answers more concise",
]


class MockClient:
    """Never fails; the same prompt always yields the same schema-valid payload."""

    provider_id = ProviderId.MOCK

    def __init__(self) -> None:
        self.calls = 0

    async def generate(self, prompt: str, *, max_tokens: Optional[int] = None) -> str:
        self.calls += 1
        return json.dumps(self.payload_for(prompt))

    @staticmethod
    def payload_for(prompt: str) -> dict:
        seed = int.from_bytes(hashlib.sha256(prompt.encode("utf-8")).digest()[:8], "big")
        rng = random.Random(seed)
        score = rng.randint(60, 95)
        strengths = rng.sample(_STRENGTHS, 2)
        improvements = rng.sample(_IMPROVEMENTS, 2)
        return {
            "score": score,
            "strengths": strengths,
            "improvements": improvements,
            "feedback": (
                f"The response shows {strengths[0].lower()} and would benefit if the candidate "
                f"would {improvements[0][0].lower()}{improvements[0][1:]}."
            ),
            "summary": (
                "The candidate gave consistent answers across the interview and showed "
                "a working understanding of the core topics."
            ),
            "areasForImprovement": "; ".join(improvements),
            "recommendations": (
                "Practice answering with the STAR structure and prepare two or three "
                "detailed project stories with measurable outcomes."
            ),
        }


__all__ = ["MockClient"]
