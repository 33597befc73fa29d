"""MCP tool surface of the orchestrator.

Every orchestrator operation is offered as an MCP tool so that agents can
manage and reach the server fleet over the same protocol they use for the
servers themselves. Tools answer with a JSON document.
"""
import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import settings
from .discovery import ToolDiscoveryAggregator
from .forwarding import CallForwarder
from .health import HealthProber
from .registry_server.model import (DiscoverToolsRequest, ForwardMcpRequest, GetServersRequest, RegisterServerRequest,
                                    ServerHealth)
from .registry_server.storage import McpServerRegistry

logger = logging.getLogger(__name__)


def _dump(model) -> str:
    return model.model_dump_json()


def build_mcp_server(registry: McpServerRegistry,
                     prober: HealthProber,
                     forwarder: CallForwarder,
                     aggregator: ToolDiscoveryAggregator) -> FastMCP:
    """Builds the orchestrator MCP server.

    The server speaks stateless streamable HTTP with plain JSON responses and
    serves its endpoint at ``/mcp`` of the app returned by ``streamable_http_app()``.

    Args:
        registry: The registry backing the management tools.
        prober: The health prober backing the health tools.
        forwarder: The forwarder backing forward_mcp_call.
        aggregator: The aggregator backing discover_mcp_tools.

    Returns:
        The FastMCP server with all orchestrator tools registered.
    """
    mcp = FastMCP(settings.mcp_service_name, stateless_http=True, json_response=True, streamable_http_path="/mcp")

    @mcp.tool()
    def register_mcp_server(name: str, description: str, base_url: str, version: str = "",
                            capabilities: list[str] | None = None,
                            metadata: dict[str, Any] | None = None) -> str:
        """Register a new MCP server with the orchestrator."""
        request = RegisterServerRequest(name=name, description=description, base_url=base_url, version=version,
                                        capabilities=capabilities or [], metadata=metadata or {})
        return _dump(registry.register_server(request))

    @mcp.tool()
    def unregister_mcp_server(server_id: str) -> str:
        """Remove an MCP server from the orchestrator."""
        if registry.unregister_server(server_id):
            return json.dumps({"success": True, "message": f"Server '{server_id}' unregistered"})
        return json.dumps({"success": False, "message": f"Server '{server_id}' not found"})

    @mcp.tool()
    def get_mcp_servers(is_active: bool | None = None, health: ServerHealth | None = None,
                        search_term: str | None = None, page: int = 1, page_size: int = 20) -> str:
        """List registered MCP servers with optional filters and pagination."""
        request = GetServersRequest(is_active=is_active, health=health, search_term=search_term, page=page,
                                    page_size=page_size)
        return _dump(registry.get_servers(request))

    @mcp.tool()
    def get_mcp_server(server_id: str) -> str:
        """Get the registry entry of one MCP server."""
        server = registry.get_server(server_id)
        if server is None:
            return json.dumps({"error": f"Server '{server_id}' not found"})
        return _dump(server)

    @mcp.tool()
    async def health_check_mcp_server(server_id: str) -> str:
        """Check the health of one MCP server."""
        return _dump(await prober.probe(server_id))

    @mcp.tool()
    async def health_check_all_servers() -> str:
        """Check the health of every registered MCP server."""
        results = await prober.probe_all()
        return json.dumps({"results": [r.model_dump(mode="json") for r in results]})

    @mcp.tool()
    async def forward_mcp_call(server_id: str, method: str, parameters: dict[str, Any] | None = None,
                               tenant_id: str | None = None) -> str:
        """Forward an MCP method call to a registered server."""
        request = ForwardMcpRequest(server_id=server_id, method=method, parameters=parameters or {},
                                    tenant_id=tenant_id)
        return _dump(await forwarder.forward(request))

    @mcp.tool()
    async def discover_mcp_tools(search_term: str | None = None, server_ids: list[str] | None = None,
                                 category: str | None = None) -> str:
        """Discover tools across the registered MCP servers."""
        request = DiscoverToolsRequest(search_term=search_term, server_ids=server_ids or [], category=category)
        return _dump(await aggregator.discover(request))

    logger.info(f"Built MCP server: {settings.mcp_service_name}")
    return mcp
