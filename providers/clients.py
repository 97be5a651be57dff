"""HTTP adapters that send one prompt to a provider and return raw text."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from config.providers import ProviderConfig, ProviderId
from config.settings import Settings
from providers.mock import MockClient
from providers.registry import REAL_PROVIDERS, ProviderRegistry

logger = logging.getLogger(__name__)

ASSESSOR_SYSTEM_PROMPT = "You are an expert interview assessor that always responds with valid JSON."
ANTHROPIC_VERSION = "2023-06-01"


class ProviderError(RuntimeError):  # Transport or payload failure from a provider
    pass


class ProviderClient(Protocol):  # Uniform text-completion interface
    provider_id: ProviderId

    async def generate(self, prompt: str, *, max_tokens: Optional[int] = None) -> str: ...


class _HttpProviderClient:
    provider_id: ProviderId

    def __init__(self, cfg: ProviderConfig, api_key: str, http: httpx.AsyncClient) -> None:
        if not cfg.base_url:
            raise ValueError(f"Provider {cfg.id.value} has no base_url configured")
        if not api_key:
            raise ValueError(f"Provider {cfg.id.value} has no API key")
        self._cfg = cfg
        self._api_key = api_key
        self._http = http

    async def _post(self, path: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Any:
        url = f"{self._cfg.base_url.rstrip('/')}{path}"
        timeout = self._cfg.timeout_s if self._cfg.timeout_s > 0 else None
        try:
            response = await self._http.post(url, json=payload, headers=headers, timeout=timeout)
        except httpx.HTTPError as exc:
            raise ProviderError(f"{self.provider_id.value} transport failed: {exc}") from exc
        if response.status_code >= 400:
            raise ProviderError(f"{self.provider_id.value} returned status {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{self.provider_id.value} payload was not JSON") from exc

    def _max_tokens(self, max_tokens: Optional[int]) -> int:
        return int(max_tokens) if max_tokens else self._cfg.max_output_tokens


class OpenAIClient(_HttpProviderClient):
    provider_id = ProviderId.OPENAI

    async def generate(self, prompt: str, *, max_tokens: Optional[int] = None) -> str:
        payload = {
            "model": self._cfg.model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
            "max_tokens": self._max_tokens(max_tokens),
        }
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self._api_key}"}
        data = await self._post("/chat/completions", payload, headers)
        choices = data.get("choices") if isinstance(data, dict) else None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        raise ProviderError("openai response missing content")


class AnthropicClient(_HttpProviderClient):
    provider_id = ProviderId.ANTHROPIC

    async def generate(self, prompt: str, *, max_tokens: Optional[int] = None) -> str:
        payload = {
            "model": self._cfg.model,
            "max_tokens": self._max_tokens(max_tokens),
            "system": ASSESSOR_SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        data = await self._post("/messages", payload, headers)
        blocks = data.get("content") if isinstance(data, dict) else None
        if isinstance(blocks, list):
            for block in blocks:
                if isinstance(block, dict) and isinstance(block.get("text"), str):
                    return block["text"]
        raise ProviderError("anthropic response missing text block")


class GeminiClient(_HttpProviderClient):
    provider_id = ProviderId.GEMINI

    async def generate(self, prompt: str, *, max_tokens: Optional[int] = None) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.7,
                "topP": 0.9,
                "topK": 40,
                "maxOutputTokens": self._max_tokens(max_tokens),
            },
        }
        headers = {"Content-Type": "application/json", "x-goog-api-key": self._api_key}
        data = await self._post(f"/models/{self._cfg.model}:generateContent", payload, headers)
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content") or {}
            parts = content.get("parts") if isinstance(content, dict) else None
            for part in parts or []:
                if isinstance(part, dict) and isinstance(part.get("text"), str):
                    return part["text"]
        raise ProviderError("gemini response missing candidate text")


_ADAPTERS = {
    ProviderId.GEMINI: GeminiClient,
    ProviderId.OPENAI: OpenAIClient,
    ProviderId.ANTHROPIC: AnthropicClient,
}


def build_clients(
    registry: ProviderRegistry,
    settings: Settings,
    http: httpx.AsyncClient,
) -> Dict[ProviderId, ProviderClient]:
    """Construct a client for every enabled provider; init failures disable the provider."""

    clients: Dict[ProviderId, ProviderClient] = {ProviderId.MOCK: MockClient()}
    for provider_id in REAL_PROVIDERS:
        if not registry.is_enabled(provider_id):
            continue
        cfg = registry.config(provider_id)
        try:
            clients[provider_id] = _ADAPTERS[provider_id](cfg, settings.api_key(cfg.api_key_env) or "", http)
        except (ValueError, TypeError) as exc:
            logger.error("Failed to initialize %s client: %s", provider_id.value, exc)
            registry.disable(provider_id, f"init failure: {exc}")
    return clients


__all__ = [
    "AnthropicClient",
    "GeminiClient",
    "OpenAIClient",
    "ProviderClient",
    "ProviderError",
    "build_clients",
]
