from __future__ import annotations  # Provider table schema and loader

from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ProviderId(str, Enum):  # Interchangeable LLM backends
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    MOCK = "mock"


class ProviderConfig(BaseModel):  # Static provider configuration entry
    id: ProviderId
    enabled: bool = True
    priority: int = Field(ge=0)
    max_retries: int = Field(default=2, ge=0)
    timeout_s: float = Field(default=30.0, ge=0.0)
    model: str = ""
    base_url: str = ""
    api_key_env: Optional[str] = None
    max_output_tokens: int = Field(default=1000, ge=1)


DEFAULT_PROVIDERS: Dict[ProviderId, ProviderConfig] = {
    ProviderId.GEMINI: ProviderConfig(
        id=ProviderId.GEMINI,
        priority=1,
        max_retries=3,
        timeout_s=30.0,
        model="gemini-pro",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        api_key_env="GOOGLE_GEMINI_API_KEY",
        max_output_tokens=2048,
    ),
    ProviderId.OPENAI: ProviderConfig(
        id=ProviderId.OPENAI,
        priority=2,
        max_retries=2,
        timeout_s=30.0,
        model="gpt-4-turbo",
        base_url="https://api.openai.com/v1",
        api_key_env="OPENAI_API_KEY",
        max_output_tokens=1000,
    ),
    ProviderId.ANTHROPIC: ProviderConfig(
        id=ProviderId.ANTHROPIC,
        priority=3,
        max_retries=2,
        timeout_s=30.0,
        model="claude-3-sonnet-20240229",
        base_url="https://api.anthropic.com/v1",
        api_key_env="ANTHROPIC_API_KEY",
        max_output_tokens=1000,
    ),
    ProviderId.MOCK: ProviderConfig(
        id=ProviderId.MOCK,
        priority=100,
        max_retries=0,
        timeout_s=0.0,
        model="mock",
    ),
}


def _load_yaml(path: Path) -> dict:
    import yaml  # local import to avoid mandatory dependency until used

    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_provider_table(path: Optional[Path] = None) -> Dict[ProviderId, ProviderConfig]:  # Merge YAML overrides onto defaults
    table = {key: cfg.model_copy() for key, cfg in DEFAULT_PROVIDERS.items()}
    if path is None:
        return table
    try:
        raw = _load_yaml(path)
    except FileNotFoundError:
        return table
    for name, overrides in (raw.get("providers") or {}).items():
        provider_id = ProviderId(name)
        merged = table[provider_id].model_dump()
        merged.update(overrides or {})
        merged["id"] = provider_id
        table[provider_id] = ProviderConfig.model_validate(merged)
    return table


__all__ = ["DEFAULT_PROVIDERS", "ProviderConfig", "ProviderId", "load_provider_table"]
