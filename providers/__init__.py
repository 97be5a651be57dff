from __future__ import annotations  # Re-export providers public API

from .clients import (
    AnthropicClient,
    GeminiClient,
    OpenAIClient,
    ProviderClient,
    ProviderError,
    build_clients,
)
from .mock import MockClient
from .registry import REAL_PROVIDERS, ProviderRegistry

__all__ = [
    "AnthropicClient",
    "GeminiClient",
    "MockClient",
    "OpenAIClient",
    "ProviderClient",
    "ProviderError",
    "ProviderRegistry",
    "REAL_PROVIDERS",
    "build_clients",
]
