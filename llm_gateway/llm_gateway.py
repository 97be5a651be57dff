from __future__ import annotations  # Tolerant provider call combinator

import asyncio
import logging
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from config.providers import ProviderConfig, ProviderId
from observability import log_event
from providers.clients import ProviderClient
from services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fallback = Union[T, Callable[[], T]]


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


async def with_timeout(factory: Callable[[], Awaitable[T]], timeout_s: float) -> T:
    """Await ``factory()`` for at most ``timeout_s`` seconds (no limit when <= 0)."""

    if timeout_s <= 0:
        return await factory()
    try:
        return await asyncio.wait_for(factory(), timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        raise LlmGatewayError(f"provider call timed out after {timeout_s:.1f}s") from exc


async def with_retry(fn: Callable[[int], Awaitable[T]], max_retries: int, *, label: str = "llm") -> T:
    """Run ``fn(attempt)`` up to ``max_retries + 1`` times, re-raising as LlmGatewayError."""

    attempts = max(0, max_retries) + 1
    last_error: Optional[BaseException] = None
    for attempt in range(attempts):
        try:
            return await fn(attempt)
        except Exception as exc:  # noqa: BLE001
            last_error = exc
            logger.warning("%s attempt %d/%d failed: %s", label, attempt + 1, attempts, exc)
    raise LlmGatewayError(f"{label} failed after {attempts} attempts: {last_error}") from last_error


def _resolve(fallback: Fallback[T]) -> T:
    if callable(fallback):
        return fallback()  # type: ignore[return-value]
    return fallback


async def call_with_fallback(
    client: Optional[ProviderClient],
    prompt: str,
    parse: Callable[[str], Optional[T]],
    fallback: Fallback[T],
    *,
    config: ProviderConfig,
    limiter: Optional[RateLimiter] = None,
    label: str = "llm",
    session_id: str = "-",
    max_tokens: Optional[int] = None,
) -> T:
    """Send ``prompt`` and parse the reply; any provider-caused failure yields ``fallback``.

    ``parse`` returning ``None`` counts as a failed attempt, the same as a
    transport error or a timeout. The retry budget and timeout come from
    ``config``. Each attempt against a real provider holds one rate limiter
    slot; the in-process mock provider never takes one.
    """

    if client is None:
        log_event("llm.unavailable", session_id, provider=config.id.value, stage=label, outcome="fallback")
        return _resolve(fallback)

    throttled = limiter is not None and config.id is not ProviderId.MOCK

    async def _attempt(attempt: int) -> T:
        async with limiter.slot() if throttled else nullcontext():
            text = await with_timeout(lambda: client.generate(prompt, max_tokens=max_tokens), config.timeout_s)
        parsed = parse(text)
        if parsed is None:
            raise LlmGatewayError("response could not be parsed")
        return parsed

    try:
        return await with_retry(_attempt, config.max_retries, label=f"{config.id.value}:{label}")
    except LlmGatewayError as exc:
        log_event(
            "llm.fallback",
            session_id,
            level=logging.WARNING,
            provider=config.id.value,
            stage=label,
            attempts=config.max_retries + 1,
            outcome="fallback",
            reason=str(exc.__cause__ or exc),
        )
        return _resolve(fallback)


def describe_failure(exc: Any) -> str:
    """Short single-line description of a provider failure for status output."""

    text = str(exc).splitlines()[0].strip() if str(exc) else type(exc).__name__
    return text if len(text) <= 200 else text[:197] + "..."


__all__ = ["LlmGatewayError", "call_with_fallback", "describe_failure", "with_retry", "with_timeout"]
