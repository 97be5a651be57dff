"""Configuration package for the interview analysis services."""
from .providers import DEFAULT_PROVIDERS, ProviderConfig, ProviderId, load_provider_table
from .settings import Settings, settings

__all__ = [
    "DEFAULT_PROVIDERS",
    "ProviderConfig",
    "ProviderId",
    "load_provider_table",
    "Settings",
    "settings",
]
