"""In-memory storage implementation for the MCP server registry."""
import logging
import threading
import uuid

from .model import (GetServersRequest, GetServersResponse, McpServerInfo, RegisterServerRequest,
                    RegisterServerResponse, ServerHealth, utc_now)
from .storage import McpServerRegistry

logger = logging.getLogger(__name__)


class InMemoryMcpServerRegistry(McpServerRegistry):
    """Thread-safe in-memory implementation of the MCP server registry."""

    def __init__(self) -> None:
        self._servers: dict[str, McpServerInfo] = {}
        self._lock = threading.Lock()

    def register_server(self, request: RegisterServerRequest) -> RegisterServerResponse:
        """Registers a new MCP server and returns its generated id."""
        now = utc_now()
        server = McpServerInfo(
            id=str(uuid.uuid4()),
            name=request.name,
            description=request.description,
            base_url=request.base_url.rstrip("/"),
            version=request.version,
            capabilities=list(request.capabilities),
            metadata=dict(request.metadata),
            registered_at=now,
            last_health_check=now,
            health=ServerHealth.unknown,
        )
        with self._lock:
            self._servers[server.id] = server

        logger.info(f"Registered MCP server {server.id} ({server.name}) at {server.base_url}")
        return RegisterServerResponse(id=server.id, message=f"Server '{server.name}' registered successfully")

    def unregister_server(self, server_id: str) -> bool:
        """Removes a server, returning whether it was registered."""
        with self._lock:
            server = self._servers.pop(server_id, None)

        if server is None:
            return False
        logger.info(f"Unregistered MCP server {server_id} ({server.name})")
        return True

    def get_server(self, server_id: str) -> McpServerInfo | None:
        """Retrieves a snapshot of a specific server."""
        with self._lock:
            server = self._servers.get(server_id)
            return server.model_copy(deep=True) if server else None

    def get_servers(self, request: GetServersRequest) -> GetServersResponse:
        """Retrieves a page of servers matching all supplied filters."""
        servers = self.get_all_servers()

        if request.is_active is not None:
            servers = [s for s in servers if s.is_active == request.is_active]

        if request.health is not None:
            servers = [s for s in servers if s.health == request.health]

        if request.search_term:
            search_term = request.search_term.lower()
            servers = [s for s in servers
                       if search_term in s.name.lower() or search_term in s.description.lower()]

        total_count = len(servers)
        start = (request.page - 1) * request.page_size
        return GetServersResponse(
            servers=servers[start:start + request.page_size],
            total_count=total_count,
            page=request.page,
            page_size=request.page_size,
            has_more=request.page * request.page_size < total_count,
        )

    def get_all_servers(self, active_only: bool = False) -> list[McpServerInfo]:
        """Retrieves snapshots of all registered servers."""
        with self._lock:
            return [s.model_copy(deep=True) for s in self._servers.values()
                    if not active_only or s.is_active]

    def update_server_health(self, server_id: str, health: ServerHealth, message: str = "") -> bool:
        """Stores a new health verdict for a server."""
        with self._lock:
            server = self._servers.get(server_id)
            if server is None:
                return False
            server.health = health
            server.last_health_check = utc_now()

        logger.debug(f"Updated health for server {server_id}: {health.value} - {message}")
        return True
