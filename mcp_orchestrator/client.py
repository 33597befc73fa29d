"""Client for the orchestrator HTTP API."""
import logging
from typing import Any

import httpx

from .config import settings
from .registry_server.model import (DiscoverToolsRequest, DiscoverToolsResponse, ForwardMcpRequest,
                                    ForwardMcpResponse, GetServersRequest, GetServersResponse, HealthCheckResponse,
                                    McpServerInfo, RegisterServerRequest, RegisterServerResponse)

logger = logging.getLogger(__name__)


class OrchestratorClient:
    """Client for registering, probing and calling MCP servers through the orchestrator."""

    def __init__(self, orchestrator_url: str, req_opts: dict[str, str] | None = None):
        """Initializes the OrchestratorClient.

        Args:
            orchestrator_url: The base URL of the orchestrator service.
            req_opts: Optional dictionary of HTTP headers for requests.
        """
        if req_opts is None:
            req_opts = settings.orchestrator_auth_headers
        self.orchestrator_url = orchestrator_url.rstrip("/")
        self.client = httpx.Client(headers=req_opts, timeout=30)

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error during {operation}: {e} with response: {response.text if response.text else '<empty>'}")
            raise

    def register_server(self, request: RegisterServerRequest) -> RegisterServerResponse:
        """Registers a new MCP server.

        Args:
            request: The server metadata.

        Returns:
            The assigned id and a confirmation message.
        """
        response = self.client.post(url=f"{self.orchestrator_url}/servers/register",
                                    json=request.model_dump(mode="json"))
        self._raise_for_status(response, "register_server")
        return RegisterServerResponse.model_validate(response.json())

    def unregister_server(self, server_id: str) -> bool:
        """Unregisters an MCP server, returning False if it was not registered."""
        response = self.client.delete(url=f"{self.orchestrator_url}/servers/{server_id}")
        if response.status_code == 404:
            return False
        self._raise_for_status(response, "unregister_server")
        return True

    def get_servers(self, request: GetServersRequest | None = None) -> GetServersResponse:
        """Retrieves one page of registered servers.

        Args:
            request: Optional filters and pagination options.

        Returns:
            The page of servers.
        """
        request = request or GetServersRequest()
        params: dict[str, Any] = request.model_dump(mode="json", exclude_none=True)
        response = self.client.get(url=f"{self.orchestrator_url}/servers", params=params)
        self._raise_for_status(response, "get_servers")
        return GetServersResponse.model_validate(response.json())

    def get_server(self, server_id: str) -> McpServerInfo | None:
        """Retrieves a specific server, or None if not found."""
        response = self.client.get(url=f"{self.orchestrator_url}/servers/{server_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "get_server")
        return McpServerInfo.model_validate(response.json())

    def health_check(self, server_id: str) -> HealthCheckResponse:
        response = self.client.post(url=f"{self.orchestrator_url}/servers/{server_id}/health")
        self._raise_for_status(response, "health_check")
        return HealthCheckResponse.model_validate(response.json())

    def health_check_all(self) -> list[HealthCheckResponse]:
        response = self.client.post(url=f"{self.orchestrator_url}/servers/health/all")
        self._raise_for_status(response, "health_check_all")
        return [HealthCheckResponse.model_validate(item) for item in response.json()]

    def forward(self, request: ForwardMcpRequest) -> ForwardMcpResponse:
        """Forwards an MCP call through the orchestrator.

        Args:
            request: The call envelope.

        Returns:
            The outcome reported by the orchestrator.
        """
        response = self.client.post(url=f"{self.orchestrator_url}/forward", json=request.model_dump(mode="json"))
        self._raise_for_status(response, "forward")
        return ForwardMcpResponse.model_validate(response.json())

    def discover_tools(self, request: DiscoverToolsRequest | None = None) -> DiscoverToolsResponse:
        """Discovers tools across the servers registered with the orchestrator."""
        request = request or DiscoverToolsRequest()
        response = self.client.post(url=f"{self.orchestrator_url}/forward/tools/discover",
                                    json=request.model_dump(mode="json"))
        self._raise_for_status(response, "discover_tools")
        return DiscoverToolsResponse.model_validate(response.json())

    def close(self) -> None:
        self.client.close()
