from .client import OrchestratorClient
from .discovery import ToolDiscoveryAggregator
from .forwarding import CallForwarder
from .health import HealthProber
from .mcp_tools import build_mcp_server
from .registry_server import load_orchestrator, McpServerRegistry, InMemoryMcpServerRegistry
from .registry_server.model import ServerHealth, McpServerInfo, RegisterServerRequest, RegisterServerResponse, \
    GetServersRequest, GetServersResponse, ForwardMcpRequest, ForwardMcpResponse, HealthCheckResponse, \
    DiscoverToolsRequest, DiscoverToolsResponse, ToolInfo

__all__ = [
    "load_orchestrator",
    "OrchestratorClient",
    "McpServerRegistry",
    "InMemoryMcpServerRegistry",
    "HealthProber",
    "CallForwarder",
    "ToolDiscoveryAggregator",
    "build_mcp_server",
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
