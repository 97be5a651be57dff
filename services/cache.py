"""In-memory TTL cache for finished interview analyses."""
from __future__ import annotations

import hashlib
import json
import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Callable, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from analysis.types import AnalysisRequest, InterviewAnalysis
    from config.providers import ProviderId


class AnalysisCache:
    """Bounded TTL cache; when full the oldest entry is evicted first."""

    def __init__(
        self,
        ttl_s: float = 300.0,
        max_entries: int = 100,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, InterviewAnalysis]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(request: "AnalysisRequest", provider: "ProviderId") -> str:
        """Stable hash of candidate, job title, ordered (question id, answer) pairs, provider
        and the options that change the produced analysis."""

        material = {
            "session_id": request.session_id,
            "candidate_name": request.candidate_name,
            "job_title": request.job_title,
            "answers": [[qa.question_id, qa.answer] for qa in request.question_answers],
            "provider": getattr(provider, "value", provider),
            "detailed": request.options.detailed,
            "include_transcript": request.options.include_transcript,
        }
        canonical = json.dumps(material, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional["InterviewAnalysis"]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_s:
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return value

    def put(self, key: str, value: "InterviewAnalysis") -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self._clock(), value)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


__all__ = ["AnalysisCache"]
