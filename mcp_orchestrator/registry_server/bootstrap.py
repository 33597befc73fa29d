"""Bootstrap logic for the orchestrator FastAPI application."""
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Response

from ..config import settings
from ..discovery import ToolDiscoveryAggregator
from ..forwarding import CallForwarder
from ..health import HealthProber
from ..mcp_tools import build_mcp_server
from ..tenant import get_tenant_id
from .in_memory_registry_storage import InMemoryMcpServerRegistry
from .model import (DiscoverToolsRequest, DiscoverToolsResponse, ForwardMcpRequest, ForwardMcpResponse,
                    GetServersRequest, GetServersResponse, HealthCheckResponse, McpServerInfo, RegisterServerRequest,
                    RegisterServerResponse, ServerHealth, utc_now)
from .storage import McpServerRegistry

SERVICE_NAME = "MCP Orchestrator"
SERVICE_VERSION = "1.0.0"


def load_orchestrator(registry: McpServerRegistry | None = None,
                      prober: HealthProber | None = None,
                      forwarder: CallForwarder | None = None,
                      aggregator: ToolDiscoveryAggregator | None = None) -> FastAPI:
    """Bootstraps the orchestrator FastAPI application.

    Args:
        registry: The registry storage implementation, in-memory by default.
        prober: The health prober, built on the registry by default.
        forwarder: The call forwarder, built on the registry by default.
        aggregator: The tool discovery aggregator, built on the forwarder by default.

    Returns:
        A configured FastAPI application instance.
    """
    registry = registry if registry is not None else InMemoryMcpServerRegistry()
    prober = prober if prober is not None else HealthProber(registry)
    forwarder = forwarder if forwarder is not None else CallForwarder(registry)
    aggregator = aggregator if aggregator is not None else ToolDiscoveryAggregator(registry, forwarder)

    mcp_server = build_mcp_server(registry, prober, forwarder, aggregator)
    mcp_app = mcp_server.streamable_http_app()
    mcp_mount_path = f"/api/{settings.mcp_service_name}"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Mounted apps get no lifespan of their own.
        async with mcp_server.session_manager.run():
            yield

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, root_path=settings.api_root_path, lifespan=lifespan)

    # Server Management Endpoints
    server_router = APIRouter(prefix="/servers", tags=["Server Management"])

    @server_router.post("/register")
    def register_server(request: RegisterServerRequest) -> RegisterServerResponse:
        """Endpoint to register a new MCP server."""
        return registry.register_server(request)

    @server_router.post("/health/all")
    async def health_check_all() -> list[HealthCheckResponse]:
        """Endpoint to check the health of all registered servers."""
        return await prober.probe_all()

    @server_router.delete("/{server_id}", status_code=204)
    def unregister_server(server_id: str) -> Response:
        """Endpoint to unregister an MCP server."""
        if not registry.unregister_server(server_id):
            raise HTTPException(status_code=404, detail=f"Server '{server_id}' not found")
        return Response(status_code=204)

    @server_router.get("")
    def get_servers(is_active: bool | None = None,
                    health: ServerHealth | None = None,
                    search_term: str | None = Query(default=None, max_length=200),
                    page: int = Query(default=1, ge=1),
                    page_size: int = Query(default=20, ge=1, le=100)) -> GetServersResponse:
        """Endpoint to list registered servers with filtering and pagination."""
        return registry.get_servers(GetServersRequest(is_active=is_active, health=health, search_term=search_term,
                                                      page=page, page_size=page_size))

    @server_router.get("/{server_id}")
    def get_server(server_id: str) -> McpServerInfo:
        """Endpoint to retrieve a specific MCP server."""
        server = registry.get_server(server_id)
        if server:
            return server
        raise HTTPException(status_code=404, detail=f"Server '{server_id}' not found")

    @server_router.post("/{server_id}/health")
    async def health_check(server_id: str) -> HealthCheckResponse:
        """Endpoint to check the health of a specific server."""
        return await prober.probe(server_id)

    # Forwarding Endpoints
    forward_router = APIRouter(prefix="/forward", tags=["Request Forwarding"])

    @forward_router.post("")
    async def forward_mcp_call(request: ForwardMcpRequest,
                               tenant_id: str = Depends(get_tenant_id)) -> ForwardMcpResponse:
        """Endpoint to forward an MCP call to a registered server."""
        if not request.tenant_id and tenant_id:
            request = request.model_copy(update={"tenant_id": tenant_id})
        return await forwarder.forward(request)

    @forward_router.post("/tools/discover")
    async def discover_tools(request: DiscoverToolsRequest) -> DiscoverToolsResponse:
        """Endpoint to discover tools across registered servers."""
        return await aggregator.discover(request)

    app.include_router(server_router)
    app.include_router(forward_router)
    app.mount(mcp_mount_path, mcp_app)

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "Healthy", "service": SERVICE_NAME, "version": SERVICE_VERSION,
                "timestamp": utc_now().isoformat()}

    @app.get("/")
    def root() -> dict[str, Any]:
        """Service information endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Orchestrator that manages and routes requests to other MCP servers",
            "endpoints": {
                "health": "/health",
                "docs": "/docs",
                "server_management": "/servers",
                "forwarding": "/forward",
                "mcp": f"{mcp_mount_path}/mcp",
            },
            "timestamp": utc_now().isoformat(),
        }

    return app
