"""Periodic provider self-test that disables providers failing a synthetic scoring call."""
from __future__ import annotations

import asyncio
import logging
from contextlib import nullcontext
from typing import Dict, List, Optional

from analysis.prompts import build_score_prompt
from analysis.types import QuestionAnswer
from config.providers import ProviderId
from llm_gateway import describe_failure, extract_object, with_timeout
from observability import log_event
from providers.clients import ProviderClient
from providers.registry import REAL_PROVIDERS, ProviderRegistry
from services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

HEALTH_SESSION_ID = "health-check"

HEALTH_QUESTION = QuestionAnswer(
    question_id="health-check",
    question="What is 2+2?",
    answer="4",
    question_type="technical",
    skill_tag="math",
    difficulty="beginner",
)


class HealthCheckFailed(RuntimeError):  # Health check reply was unusable
    pass


def check_health_reply(text: str) -> int:
    """Strict check of a health check reply: the raw score must be a number in [0, 100].

    Unlike answer scoring, nothing is coerced or clamped here.
    """

    payload = extract_object(text)
    if payload is None:
        raise HealthCheckFailed("health check reply was not a JSON object")
    score = payload.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise HealthCheckFailed(f"health check reply had no numeric score: {score!r}")
    if not 0 <= score <= 100:
        raise HealthCheckFailed(f"health check score out of range: {score}")
    return int(score)


class HealthMonitor:
    """Checks every enabled real provider; a failed check disables it until an operator re-enables it."""

    def __init__(
        self,
        registry: ProviderRegistry,
        clients: Dict[ProviderId, ProviderClient],
        *,
        limiter: Optional[RateLimiter] = None,
        interval_s: float = 300.0,
    ) -> None:
        self.registry = registry
        self.clients = clients
        self.limiter = limiter
        self.interval_s = interval_s
        self._task: Optional[asyncio.Task] = None

    async def _check_provider(self, provider_id: ProviderId) -> None:
        client = self.clients.get(provider_id)
        if client is None:
            raise HealthCheckFailed("no client initialized")
        cfg = self.registry.config(provider_id)
        prompt = build_score_prompt(HEALTH_QUESTION)
        async with self.limiter.slot() if self.limiter is not None else nullcontext():
            text = await with_timeout(lambda: client.generate(prompt), cfg.timeout_s)
        check_health_reply(text)

    async def check_once(self) -> Dict[ProviderId, bool]:
        """Check each enabled real provider once; returns provider -> healthy."""

        results: Dict[ProviderId, bool] = {}
        targets: List[ProviderId] = [p for p in self.registry.enabled_providers() if p in REAL_PROVIDERS]
        for provider_id in targets:
            try:
                await self._check_provider(provider_id)
            except Exception as exc:  # noqa: BLE001
                reason = f"health check failed: {describe_failure(exc)}"
                self.registry.disable(provider_id, reason)
                log_event(
                    "provider.disabled",
                    HEALTH_SESSION_ID,
                    level=logging.ERROR,
                    provider=provider_id.value,
                    reason=reason,
                )
                results[provider_id] = False
            else:
                results[provider_id] = True
        return results

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                await self.check_once()
            except Exception:  # noqa: BLE001
                logger.exception("Health check round failed")

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Health monitor started (every %.0fs)", self.interval_s)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()


__all__ = ["HealthCheckFailed", "HealthMonitor", "check_health_reply"]
