import asyncio
import sys
from pathlib import Path
from typing import Callable, List, Optional, Union

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.providers import DEFAULT_PROVIDERS, ProviderId
from providers.registry import ProviderRegistry
from services.rate_limiter import RateLimiter

Reply = Union[str, BaseException]


class ScriptedClient:
    """Fake provider client; ``handler(prompt)`` returns text or an exception to raise."""

    def __init__(
        self,
        handler: Callable[[str], Reply],
        *,
        provider_id: ProviderId = ProviderId.GEMINI,
        delay: Union[float, Callable[[str], float]] = 0.0,
    ) -> None:
        self.handler = handler
        self.provider_id = provider_id
        self.delay = delay
        self.prompts: List[str] = []
        self.max_tokens: List[Optional[int]] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str, *, max_tokens: Optional[int] = None) -> str:
        self.prompts.append(prompt)
        self.max_tokens.append(max_tokens)
        delay = self.delay(prompt) if callable(self.delay) else self.delay
        if delay:
            await asyncio.sleep(delay)
        reply = self.handler(prompt)
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def no_provider_keys(monkeypatch):
    for name in ("GOOGLE_GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "DEFAULT_PROVIDER"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scripted():
    return ScriptedClient


@pytest.fixture
def registry():
    return ProviderRegistry(cfg.model_copy() for cfg in DEFAULT_PROVIDERS.values())


@pytest.fixture
def limiter():
    return RateLimiter(1000, 60.0, 100)


@pytest.fixture
def fast_config():
    return DEFAULT_PROVIDERS[ProviderId.GEMINI].model_copy(update={"max_retries": 1, "timeout_s": 1.0})
