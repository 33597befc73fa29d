from typing import Iterator

import pytest

from mcp_orchestrator.health import HealthProber
from mcp_orchestrator.registry_server.in_memory_registry_storage import InMemoryMcpServerRegistry
from mcp_orchestrator.registry_server.model import RegisterServerRequest, ServerHealth
from tests.fake_mcp_server import FakeMcpBehaviour, closed_port_url, fake_mcp_server


@pytest.fixture
def healthy_server() -> Iterator[str]:
    yield from fake_mcp_server(FakeMcpBehaviour())


@pytest.fixture
def degraded_server() -> Iterator[str]:
    yield from fake_mcp_server(FakeMcpBehaviour(health_status=503))


def register(registry: InMemoryMcpServerRegistry, name: str, base_url: str) -> str:
    return registry.register_server(RegisterServerRequest(name=name, description=name, base_url=base_url)).id


@pytest.mark.asyncio
async def test_probe_healthy_server(healthy_server):
    # Given
    registry = InMemoryMcpServerRegistry()
    server_id = register(registry, "healthy", healthy_server + "/")

    # When
    result = await HealthProber(registry, timeout=5).probe(server_id)

    # Then
    assert result.health == ServerHealth.healthy
    assert result.server_id == server_id
    assert result.response_time_ms >= 0
    assert registry.get_server(server_id).health == ServerHealth.healthy


@pytest.mark.asyncio
async def test_probe_non_success_status_is_degraded(degraded_server):
    registry = InMemoryMcpServerRegistry()
    server_id = register(registry, "degraded", degraded_server)

    result = await HealthProber(registry, timeout=5).probe(server_id)

    assert result.health == ServerHealth.degraded
    assert "503" in result.message
    assert registry.get_server(server_id).health == ServerHealth.degraded


@pytest.mark.asyncio
async def test_probe_unreachable_server_updates_registry():
    registry = InMemoryMcpServerRegistry()
    server_id = register(registry, "unreachable", closed_port_url())
    before = registry.get_server(server_id).last_health_check

    result = await HealthProber(registry, timeout=5).probe(server_id)

    assert result.health == ServerHealth.unhealthy
    assert result.message.startswith("Health check failed") or "timeout" in result.message
    server = registry.get_server(server_id)
    assert server.health == ServerHealth.unhealthy
    assert server.last_health_check >= before


@pytest.mark.asyncio
async def test_probe_timeout():
    behaviour = FakeMcpBehaviour(delay=1.0)
    for url in fake_mcp_server(behaviour):
        registry = InMemoryMcpServerRegistry()
        server_id = register(registry, "slow", url)

        result = await HealthProber(registry, timeout=0.2).probe(server_id)

        assert result.health == ServerHealth.unhealthy
        assert result.message == "Health check timeout"


@pytest.mark.asyncio
async def test_probe_unknown_server_skips_network():
    registry = InMemoryMcpServerRegistry()

    result = await HealthProber(registry).probe("missing")

    assert result.health == ServerHealth.unhealthy
    assert result.message == "Server not found"
    assert result.server_id == "missing"


@pytest.mark.asyncio
async def test_probe_all_isolates_failures(healthy_server, degraded_server):
    # Given
    registry = InMemoryMcpServerRegistry()
    healthy_id = register(registry, "healthy", healthy_server)
    unreachable_id = register(registry, "unreachable", closed_port_url())
    degraded_id = register(registry, "degraded", degraded_server)

    # When
    results = await HealthProber(registry, timeout=5).probe_all()

    # Then
    assert len(results) == 3
    verdicts = {r.server_id: r.health for r in results}
    assert verdicts == {
        healthy_id: ServerHealth.healthy,
        unreachable_id: ServerHealth.unhealthy,
        degraded_id: ServerHealth.degraded,
    }
    assert registry.get_server(unreachable_id).health == ServerHealth.unhealthy


@pytest.mark.asyncio
async def test_probe_all_turns_unexpected_errors_into_results(healthy_server, monkeypatch):
    registry = InMemoryMcpServerRegistry()
    ok_id = register(registry, "ok", healthy_server)
    broken_id = register(registry, "broken", healthy_server)
    prober = HealthProber(registry, timeout=5)
    original_probe = prober.probe

    async def flaky_probe(server_id: str):
        if server_id == broken_id:
            raise RuntimeError("boom")
        return await original_probe(server_id)

    monkeypatch.setattr(prober, "probe", flaky_probe)

    results = await prober.probe_all()

    assert [r.server_id for r in results] == [ok_id, broken_id]
    assert results[0].health == ServerHealth.healthy
    assert results[1].health == ServerHealth.unhealthy
    assert "boom" in results[1].message
    assert registry.get_server(broken_id).health == ServerHealth.unhealthy


@pytest.mark.asyncio
async def test_health_check_out_of_range_port_reports_unhealthy():
    # Given a record that bypassed request validation
    registry = InMemoryMcpServerRegistry()
    server_id = registry.register_server(RegisterServerRequest.model_construct(
        name="bad-port", description="bad-port", base_url="http://localhost:99999")).id

    # When
    result = await HealthProber(registry, timeout=5).probe(server_id)

    # Then
    assert result.health == ServerHealth.unhealthy
    assert result.message.startswith("Health check failed")
    assert registry.get_server(server_id).health == ServerHealth.unhealthy
