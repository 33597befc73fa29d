import logging
from typing import Iterator

import pytest

from mcp_orchestrator.discovery import ToolDiscoveryAggregator, parse_tools
from mcp_orchestrator.forwarding import CallForwarder
from mcp_orchestrator.registry_server.in_memory_registry_storage import InMemoryMcpServerRegistry
from mcp_orchestrator.registry_server.model import DiscoverToolsRequest, RegisterServerRequest, ServerHealth
from tests.fake_mcp_server import FakeMcpBehaviour, closed_port_url, fake_mcp_server

GIT_TOOLS = [
    {"name": "git_status", "description": "Show the working tree status", "category": "VCS",
     "inputSchema": {"type": "object", "properties": {"path": {"type": "string"}}}},
    {"name": "git_log", "description": "Show commit logs", "category": "vcs"},
    {"name": "git_blame", "description": "Show who changed what"},
]

ISSUE_TOOLS = [
    {"name": "create_issue", "description": "Create a ticket", "categories": ["tracking", "vcs"]},
    "not a tool",
]


@pytest.fixture
def git_behaviour() -> FakeMcpBehaviour:
    return FakeMcpBehaviour(tools=GIT_TOOLS)


@pytest.fixture
def git_server(git_behaviour) -> Iterator[str]:
    yield from fake_mcp_server(git_behaviour)


@pytest.fixture
def issue_server() -> Iterator[str]:
    yield from fake_mcp_server(FakeMcpBehaviour(tools=ISSUE_TOOLS))


def register(registry: InMemoryMcpServerRegistry, name: str, base_url: str) -> str:
    return registry.register_server(RegisterServerRequest(name=name, description=name, base_url=base_url)).id


def deactivate(registry: InMemoryMcpServerRegistry, server_id: str) -> None:
    # The registry has no deactivation operation; flip the stored record in place.
    with registry._lock:
        registry._servers[server_id].is_active = False


def aggregator_for(registry: InMemoryMcpServerRegistry) -> ToolDiscoveryAggregator:
    return ToolDiscoveryAggregator(registry, CallForwarder(registry), timeout=5)


@pytest.mark.asyncio
async def test_discover_with_one_failing_server(git_server):
    # Given
    registry = InMemoryMcpServerRegistry()
    git_id = register(registry, "git", git_server)
    dead_id = register(registry, "dead", closed_port_url())

    # When
    response = await aggregator_for(registry).discover(DiscoverToolsRequest())

    # Then
    assert [t.name for t in response.tools] == ["git_status", "git_log", "git_blame"]
    assert response.total_count == 3
    assert response.server_counts == {git_id: 3, dead_id: 0}
    assert all(t.server_id == git_id and t.server_name == "git" for t in response.tools)
    assert response.tools[0].input_schema["type"] == "object"
    assert response.tools[0].categories == ["VCS"]


@pytest.mark.asyncio
async def test_discover_keeps_server_order(git_server, issue_server):
    registry = InMemoryMcpServerRegistry()
    register(registry, "issues", issue_server)
    register(registry, "git", git_server)

    response = await aggregator_for(registry).discover(DiscoverToolsRequest())

    assert [t.name for t in response.tools] == ["create_issue", "git_status", "git_log", "git_blame"]


@pytest.mark.asyncio
async def test_discover_filters_and_counts_after_filtering(git_server, issue_server):
    registry = InMemoryMcpServerRegistry()
    git_id = register(registry, "git", git_server)
    issue_id = register(registry, "issues", issue_server)

    by_category = await aggregator_for(registry).discover(DiscoverToolsRequest(category="VcS"))
    assert [t.name for t in by_category.tools] == ["git_status", "git_log", "create_issue"]
    assert by_category.server_counts == {git_id: 2, issue_id: 1}

    by_search = await aggregator_for(registry).discover(DiscoverToolsRequest(search_term="SHOW"))
    assert [t.name for t in by_search.tools] == ["git_status", "git_log", "git_blame"]
    assert by_search.server_counts == {git_id: 3, issue_id: 0}

    combined = await aggregator_for(registry).discover(DiscoverToolsRequest(search_term="log", category="vcs"))
    assert [t.name for t in combined.tools] == ["git_log"]


@pytest.mark.asyncio
async def test_discover_server_subset(git_server, issue_server):
    registry = InMemoryMcpServerRegistry()
    register(registry, "git", git_server)
    issue_id = register(registry, "issues", issue_server)

    response = await aggregator_for(registry).discover(DiscoverToolsRequest(server_ids=[issue_id, "unknown"]))

    assert [t.name for t in response.tools] == ["create_issue"]
    assert response.server_counts == {issue_id: 1}


@pytest.mark.asyncio
async def test_discover_skips_ineligible_servers(git_behaviour, git_server):
    registry = InMemoryMcpServerRegistry()
    git_id = register(registry, "git", git_server)
    registry.update_server_health(git_id, ServerHealth.unhealthy)

    response = await aggregator_for(registry).discover(DiscoverToolsRequest())

    assert response.tools == []
    assert response.server_counts == {git_id: 0}
    assert git_behaviour.request_count == 0


@pytest.mark.asyncio
async def test_discover_excludes_inactive_servers(git_server):
    registry = InMemoryMcpServerRegistry()
    git_id = register(registry, "git", git_server)
    deactivate(registry, git_id)

    response = await aggregator_for(registry).discover(DiscoverToolsRequest())

    assert response.server_counts == {}
    assert response.total_count == 0


@pytest.mark.asyncio
async def test_discover_with_malformed_payload():
    for url in fake_mcp_server(FakeMcpBehaviour(raw_body='{"result": {"tools": "nope"}}')):
        registry = InMemoryMcpServerRegistry()
        server_id = register(registry, "broken", url)

        response = await aggregator_for(registry).discover(DiscoverToolsRequest())

        assert response.server_counts == {server_id: 0}


def test_parse_tools_stamps_owner():
    registry = InMemoryMcpServerRegistry()
    server = registry.get_server(register(registry, "git", "http://localhost:1"))

    tools = parse_tools(server, {"tools": [{"name": "a", "inputSchema": "bad"}, 3]})

    assert len(tools) == 1
    assert tools[0].server_id == server.id
    assert tools[0].server_name == "git"
    assert tools[0].description == ""
    assert tools[0].input_schema == {}


@pytest.mark.asyncio
async def test_discover_logs_unreachable_server_once(caplog):
    registry = InMemoryMcpServerRegistry()
    register(registry, "dead", closed_port_url())

    with caplog.at_level(logging.DEBUG, logger="mcp_orchestrator"):
        response = await aggregator_for(registry).discover(DiscoverToolsRequest())

    assert response.total_count == 0
    warnings = [r for r in caplog.records if r.name.startswith("mcp_orchestrator") and r.levelno >= logging.WARNING]
    assert len(warnings) == 1
