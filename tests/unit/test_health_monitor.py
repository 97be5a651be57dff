import asyncio

import pytest

from config.providers import DEFAULT_PROVIDERS, ProviderId
from providers.clients import ProviderError
from providers.mock import MockClient
from providers.registry import ProviderRegistry
from services.health import HealthCheckFailed, HealthMonitor, check_health_reply


def _clients(scripted, **replies):
    clients = {ProviderId.MOCK: MockClient()}
    for name, reply in replies.items():
        pid = ProviderId(name)
        clients[pid] = scripted(lambda prompt, reply=reply: reply, provider_id=pid)
    return clients


def test_failed_health_check_disables_provider(registry, scripted, limiter):
    clients = _clients(
        scripted,
        gemini='{"score": 95, "feedback": "correct"}',
        openai=ProviderError("HTTP 401"),
        anthropic="I am unable to comply",
    )
    monitor = HealthMonitor(registry, clients, limiter=limiter)

    results = asyncio.run(monitor.check_once())

    assert results == {ProviderId.GEMINI: True, ProviderId.OPENAI: False, ProviderId.ANTHROPIC: False}
    assert registry.enabled_providers() == [ProviderId.GEMINI, ProviderId.MOCK]
    assert "HTTP 401" in registry.disabled_reason(ProviderId.OPENAI)
    assert limiter.total_acquired == 3


def test_provider_without_client_is_disabled(registry, scripted):
    clients = _clients(scripted, gemini='{"score": 80}', openai='{"score": 80}')
    asyncio.run(HealthMonitor(registry, clients).check_once())
    assert not registry.is_enabled(ProviderId.ANTHROPIC)


def test_disabled_providers_are_not_checked_again(registry, scripted):
    clients = _clients(scripted, gemini='{"score": 80}', openai='{"score": 80}', anthropic='{"score": 80}')
    registry.disable(ProviderId.OPENAI, "operator")
    asyncio.run(HealthMonitor(registry, clients).check_once())
    assert clients[ProviderId.OPENAI].calls == 0
    assert clients[ProviderId.GEMINI].calls == 1
    assert clients[ProviderId.MOCK].calls == 0


def test_slow_provider_disabled_by_timeout(scripted):
    configs = [cfg.model_copy() for cfg in DEFAULT_PROVIDERS.values()]
    configs[0] = configs[0].model_copy(update={"timeout_s": 0.01})
    registry = ProviderRegistry(configs)
    clients = _clients(scripted, openai='{"score": 80}', anthropic='{"score": 80}')
    clients[ProviderId.GEMINI] = scripted(lambda prompt: '{"score": 80}', delay=0.5)
    asyncio.run(HealthMonitor(registry, clients).check_once())
    assert not registry.is_enabled(ProviderId.GEMINI)
    assert registry.select() is ProviderId.OPENAI


def test_start_and_stop_background_task(registry, scripted):
    clients = _clients(scripted, gemini='{"score": 80}', openai='{"score": 80}', anthropic='{"score": 80}')
    monitor = HealthMonitor(registry, clients, interval_s=0.01)

    async def main():
        monitor.start()
        assert monitor.running
        await asyncio.sleep(0.05)
        await monitor.stop()
        assert not monitor.running

    asyncio.run(main())
    assert clients[ProviderId.GEMINI].calls >= 1


def test_out_of_range_score_disables_provider(registry, scripted):
    clients = _clients(scripted, gemini='{"score": 150}', openai='{"score": "80"}', anthropic='{"score": 100}')
    results = asyncio.run(HealthMonitor(registry, clients).check_once())
    assert results == {ProviderId.GEMINI: False, ProviderId.OPENAI: False, ProviderId.ANTHROPIC: True}
    assert "out of range" in registry.disabled_reason(ProviderId.GEMINI)
    assert registry.select() is ProviderId.ANTHROPIC


def test_check_health_reply_is_strict():
    assert check_health_reply('{"score": 0}') == 0
    assert check_health_reply('```json\n{"score": 87.5}\n```') == 87
    for reply in ('{"score": -1}', '{"score": 100.5}', '{"score": true}', '{"feedback": "ok"}', "fine"):
        with pytest.raises(HealthCheckFailed):
            check_health_reply(reply)
