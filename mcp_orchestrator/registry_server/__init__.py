"""Registry server module for managing MCP server registrations."""
from .bootstrap import load_orchestrator
from .in_memory_registry_storage import InMemoryMcpServerRegistry
from .model import (DiscoverToolsRequest, DiscoverToolsResponse, ForwardMcpRequest, ForwardMcpResponse,
                    GetServersRequest, GetServersResponse, HealthCheckResponse, McpServerInfo, RegisterServerRequest,
                    RegisterServerResponse, ServerHealth, ToolInfo)
from .storage import McpServerRegistry

__all__ = [
    "load_orchestrator",
    "McpServerRegistry",
    "InMemoryMcpServerRegistry",
    "ServerHealth",
    "McpServerInfo",
    "RegisterServerRequest",
    "RegisterServerResponse",
    "GetServersRequest",
    "GetServersResponse",
    "ForwardMcpRequest",
    "ForwardMcpResponse",
    "HealthCheckResponse",
    "DiscoverToolsRequest",
    "DiscoverToolsResponse",
    "ToolInfo"
]
