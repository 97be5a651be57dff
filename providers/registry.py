"""Owned provider registry with priority selection and disable transitions."""
from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional, Union

from config.providers import ProviderConfig, ProviderId
from config.settings import Settings

logger = logging.getLogger(__name__)

REAL_PROVIDERS = (ProviderId.GEMINI, ProviderId.OPENAI, ProviderId.ANTHROPIC)


class ProviderRegistry:
    """Tracks which providers are enabled and picks the preferred one.

    Real providers only move from enabled to disabled at runtime, either on an
    init failure or a failed health check. :meth:`enable` is the explicit
    operator action that reverses it. The mock provider is always enabled.
    """

    def __init__(self, configs: Iterable[ProviderConfig]) -> None:
        self._lock = threading.Lock()
        self._configs: Dict[ProviderId, ProviderConfig] = {cfg.id: cfg for cfg in configs}
        if ProviderId.MOCK not in self._configs:
            self._configs[ProviderId.MOCK] = ProviderConfig(id=ProviderId.MOCK, priority=100, max_retries=0, timeout_s=0.0)
        self._configs[ProviderId.MOCK] = self._configs[ProviderId.MOCK].model_copy(update={"enabled": True})
        self._reasons: Dict[ProviderId, str] = {}

    @classmethod
    def from_settings(cls, settings: Settings, table: Dict[ProviderId, ProviderConfig]) -> "ProviderRegistry":
        """Enable each real provider iff its credential is present."""

        configs: List[ProviderConfig] = []
        for provider_id, cfg in table.items():
            if provider_id is ProviderId.MOCK:
                configs.append(cfg)
                continue
            has_key = settings.api_key(cfg.api_key_env) is not None
            configs.append(cfg.model_copy(update={"enabled": cfg.enabled and has_key}))
        registry = cls(configs)
        for provider_id in REAL_PROVIDERS:
            if provider_id in registry._configs and not registry.is_enabled(provider_id):
                registry._reasons[provider_id] = "missing credentials"
        return registry

    def config(self, provider_id: ProviderId) -> ProviderConfig:
        with self._lock:
            return self._configs[provider_id]

    def is_enabled(self, provider_id: ProviderId) -> bool:
        with self._lock:
            cfg = self._configs.get(provider_id)
            return bool(cfg and cfg.enabled)

    def enabled_providers(self, *, include_mock: bool = True) -> List[ProviderId]:
        """Enabled providers sorted by priority, lowest number first."""

        with self._lock:
            ranked = sorted(
                (cfg for cfg in self._configs.values() if cfg.enabled),
                key=lambda cfg: cfg.priority,
            )
        return [cfg.id for cfg in ranked if include_mock or cfg.id is not ProviderId.MOCK]

    def select(self, requested: Optional[Union[ProviderId, str]] = None) -> ProviderId:
        """Return the requested provider when enabled, else the best enabled one, else mock."""

        if requested is not None:
            try:
                wanted = ProviderId(requested)
            except ValueError:
                logger.warning("Unknown provider requested: %s", requested)
                wanted = None
            if wanted is not None and self.is_enabled(wanted):
                return wanted
        ranked = self.enabled_providers(include_mock=False)
        if not ranked:
            return ProviderId.MOCK
        return ranked[0]

    def disable(self, provider_id: ProviderId, reason: str) -> bool:
        """Mark ``provider_id`` disabled. Returns True when the state changed."""

        if provider_id is ProviderId.MOCK:
            logger.warning("Refusing to disable the mock provider (reason: %s)", reason)
            return False
        with self._lock:
            cfg = self._configs.get(provider_id)
            if cfg is None or not cfg.enabled:
                return False
            self._configs[provider_id] = cfg.model_copy(update={"enabled": False})
            self._reasons[provider_id] = reason
        logger.error("Provider %s disabled: %s", provider_id.value, reason)
        return True

    def enable(self, provider_id: ProviderId) -> bool:
        """Operator re-enable. Returns True when the state changed."""

        with self._lock:
            cfg = self._configs.get(provider_id)
            if cfg is None or cfg.enabled:
                return False
            self._configs[provider_id] = cfg.model_copy(update={"enabled": True})
            self._reasons.pop(provider_id, None)
        logger.info("Provider %s re-enabled by operator", provider_id.value)
        return True

    def disabled_reason(self, provider_id: ProviderId) -> Optional[str]:
        with self._lock:
            return self._reasons.get(provider_id)

    def snapshot(self) -> List[ProviderConfig]:
        with self._lock:
            return sorted((cfg.model_copy() for cfg in self._configs.values()), key=lambda cfg: cfg.priority)


__all__ = ["REAL_PROVIDERS", "ProviderRegistry"]
