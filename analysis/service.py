"""Orchestration facade: validation, provider selection, caching and the analysis pipeline."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from analysis.questions import (
    ExperienceLevel,
    GeneratedQuestion,
    generate_questions_from_job_description,
    generate_skill_based_questions,
)
from analysis.scorer import score_answers
from analysis.skills import generate_skill_assessments, group_by_skill
from analysis.synthesizer import synthesize
from analysis.types import AnalysisRequest, AnalysisValidationError, Difficulty, InterviewAnalysis
from config.providers import ProviderId, load_provider_table
from config.settings import Settings, settings as default_settings
from observability import log_event, span, total_ms
from providers.clients import ProviderClient, build_clients
from providers.registry import ProviderRegistry
from services.cache import AnalysisCache
from services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]

RequestLike = Union[AnalysisRequest, Mapping[str, Any]]


def _validation_messages(exc: ValidationError) -> List[str]:
    messages: List[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = str(error.get("msg", "invalid value"))
        messages.append(f"{location}: {message}" if location else message)
    return messages


def validate_request(request: RequestLike) -> AnalysisRequest:
    """Validate the whole request up front; every problem is reported together."""

    if isinstance(request, AnalysisRequest):
        payload: Any = request
    elif isinstance(request, Mapping):
        payload = dict(request)
    else:
        raise AnalysisValidationError(["request must be an object"])
    try:
        return AnalysisRequest.model_validate(payload)
    except ValidationError as exc:
        raise AnalysisValidationError(_validation_messages(exc)) from exc


class AIAnalysisService:
    """Runs one interview analysis end to end against the selected provider.

    Apart from :class:`AnalysisValidationError` nothing escapes
    :meth:`analyze_interview`: provider failures degrade to neutral scores
    and template narratives.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        clients: Dict[ProviderId, ProviderClient],
        *,
        cache: Optional[AnalysisCache] = None,
        limiter: Optional[RateLimiter] = None,
        settings: Optional[Settings] = None,
        default_provider: Optional[Union[ProviderId, str]] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.registry = registry
        self.clients = clients
        self.cache = cache
        self.limiter = limiter
        self.settings = settings or default_settings
        self.default_provider = default_provider or self.settings.DEFAULT_PROVIDER
        self.http = http

    async def aclose(self) -> None:
        if self.http is not None:
            await self.http.aclose()

    def _client_for(self, provider_id: ProviderId) -> Optional[ProviderClient]:
        return self.clients.get(provider_id)

    async def analyze_interview(self, request: RequestLike) -> InterviewAnalysis:
        req = validate_request(request)
        provider_id = self.registry.select(req.options.provider or self.default_provider)
        # configuration is read once so a concurrent disable does not affect this request
        cfg = self.registry.config(provider_id)
        client = self._client_for(provider_id)

        log_event("analysis.start", req.session_id, provider=provider_id.value)

        cache_key = AnalysisCache.make_key(req, provider_id) if self.cache is not None else None
        if self.cache is not None and cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                log_event("analysis.cache_hit", req.session_id, provider=provider_id.value, score=cached.overall_score)
                return cached

        events: List[Dict[str, object]] = []
        with span(events, "score"):
            scored = await score_answers(
                req.question_answers,
                client,
                config=cfg,
                limiter=self.limiter,
                batch_size=self.settings.SCORE_BATCH_SIZE,
                session_id=req.session_id,
                neutral_score=self.settings.NEUTRAL_SCORE,
                keep_feedback=req.options.detailed,
                max_tokens=req.options.max_tokens,
            )
        with span(events, "skills"):
            assessments = await generate_skill_assessments(
                group_by_skill(scored),
                client,
                config=cfg,
                limiter=self.limiter,
                session_id=req.session_id,
                max_tokens=req.options.max_tokens,
            )
        with span(events, "synthesize"):
            analysis = await synthesize(req, scored, assessments, client, config=cfg, limiter=self.limiter)

        if self.cache is not None and cache_key is not None:
            self.cache.put(cache_key, analysis)
        log_event(
            "analysis.done",
            req.session_id,
            provider=provider_id.value,
            score=analysis.overall_score,
            ms=total_ms(events),
        )
        return analysis

    async def generate_skill_based_questions(
        self,
        skills: Sequence[str],
        job_description: str,
        difficulty: Difficulty = "intermediate",
        count: int = 5,
        provider: Optional[Union[ProviderId, str]] = None,
    ) -> List[GeneratedQuestion]:
        provider_id = self.registry.select(provider or self.default_provider)
        return await generate_skill_based_questions(
            skills,
            job_description,
            difficulty,
            self._client_for(provider_id),
            config=self.registry.config(provider_id),
            count=count,
            limiter=self.limiter,
        )

    async def generate_questions_from_job_description(
        self,
        job_title: str,
        job_description: str,
        requirements: Sequence[str],
        experience_level: ExperienceLevel = "mid",
    ) -> List[GeneratedQuestion]:
        provider_id = self.registry.select(self.default_provider)
        return await generate_questions_from_job_description(
            job_title,
            job_description,
            requirements,
            experience_level,
            self._client_for(provider_id),
            config=self.registry.config(provider_id),
            limiter=self.limiter,
        )

    def provider_status(self) -> List[Dict[str, Any]]:
        """Operator view of every provider's configuration and availability."""

        status: List[Dict[str, Any]] = []
        for cfg in self.registry.snapshot():
            status.append(
                {
                    "id": cfg.id.value,
                    "enabled": cfg.enabled,
                    "priority": cfg.priority,
                    "maxRetries": cfg.max_retries,
                    "timeoutS": cfg.timeout_s,
                    "model": cfg.model,
                    "disabledReason": self.registry.disabled_reason(cfg.id),
                }
            )
        return status

    def enable_provider(self, provider_id: Union[ProviderId, str]) -> bool:
        """Operator re-enable; only providers with a constructed client can come back."""

        pid = ProviderId(provider_id)
        if pid not in self.clients:
            logger.warning("Cannot enable %s: no client was initialized", pid.value)
            return False
        return self.registry.enable(pid)


def create_service(
    settings: Optional[Settings] = None,
    http: Optional[httpx.AsyncClient] = None,
) -> AIAnalysisService:
    """Wire registry, clients, cache and rate limiter from settings."""

    settings = settings or default_settings
    config_path = Path(settings.PROVIDER_CONFIG_PATH)
    if not config_path.is_absolute():
        config_path = ROOT / config_path
    table = load_provider_table(config_path)
    registry = ProviderRegistry.from_settings(settings, table)
    http = http or httpx.AsyncClient()
    clients = build_clients(registry, settings, http)
    cache = AnalysisCache(settings.CACHE_TTL_S, settings.CACHE_MAX_ENTRIES)
    limiter = RateLimiter(
        settings.RATE_LIMIT_PER_INTERVAL,
        settings.RATE_LIMIT_INTERVAL_S,
        settings.RATE_LIMIT_CONCURRENCY,
    )
    logger.info(
        "Analysis service ready; enabled providers: %s",
        ", ".join(p.value for p in registry.enabled_providers()),
    )
    return AIAnalysisService(registry, clients, cache=cache, limiter=limiter, settings=settings, http=http)


__all__ = ["AIAnalysisService", "create_service", "validate_request"]
