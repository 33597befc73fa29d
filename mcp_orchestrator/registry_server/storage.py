"""Storage abstraction for the MCP server registry."""
from abc import ABC, abstractmethod

from .model import (GetServersRequest, GetServersResponse, McpServerInfo, RegisterServerRequest,
                    RegisterServerResponse, ServerHealth)


class McpServerRegistry(ABC):
    @abstractmethod
    def register_server(self, request: RegisterServerRequest) -> RegisterServerResponse:
        """Registers a new MCP server under a freshly generated id.

        Args:
            request: The server metadata supplied by the caller.

        Returns:
            The assigned id and a confirmation message.
        """
        pass

    @abstractmethod
    def unregister_server(self, server_id: str) -> bool:
        """Removes a server from the registry.

        Args:
            server_id: The id of the server.

        Returns:
            True if the server existed, False otherwise.
        """
        pass

    @abstractmethod
    def get_server(self, server_id: str) -> McpServerInfo | None:
        """Retrieves a snapshot of a specific server.

        Args:
            server_id: The id of the server.

        Returns:
            A copy of the server record, or None if not found.
        """
        pass

    @abstractmethod
    def get_servers(self, request: GetServersRequest) -> GetServersResponse:
        """Retrieves one page of servers matching all supplied filters.

        Args:
            request: Filters and pagination options.

        Returns:
            The page of servers together with the total match count.
        """
        pass

    @abstractmethod
    def get_all_servers(self, active_only: bool = False) -> list[McpServerInfo]:
        """Retrieves snapshots of all registered servers in registration order.

        Args:
            active_only: Only return servers flagged as active.
        """
        pass

    @abstractmethod
    def update_server_health(self, server_id: str, health: ServerHealth, message: str = "") -> bool:
        """Stores a new health verdict and refreshes the last health check time.

        Args:
            server_id: The id of the server.
            health: The new health verdict.
            message: Human readable detail of the verdict.

        Returns:
            True if the server existed, False otherwise.
        """
        pass
