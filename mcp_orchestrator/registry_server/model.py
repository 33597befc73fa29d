"""Data models for the orchestrator registry, forwarding and discovery."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ServerHealth(str, Enum):
    """Health verdict of a registered MCP server."""
    unknown = "unknown"
    healthy = "healthy"
    degraded = "degraded"
    unhealthy = "unhealthy"


class McpServerInfo(BaseModel):
    """Registry entry describing one remote MCP server."""
    id: str = Field(description="Identifier assigned by the registry")
    name: str = Field(description="Name of the server, also used in its MCP endpoint path")
    description: str = Field(description="Description of the server")
    base_url: str = Field(description="Base URL of the server without trailing slash")
    version: str = Field(default="", description="Version reported at registration")
    capabilities: list[str] = Field(default_factory=list, description="Capability tags")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Opaque metadata")
    is_active: bool = Field(default=True, description="Whether the server may receive traffic")
    registered_at: datetime = Field(default_factory=utc_now)
    last_health_check: datetime = Field(default_factory=utc_now)
    health: ServerHealth = Field(default=ServerHealth.unknown)


class RegisterServerRequest(BaseModel):
    """Request to register a new MCP server."""
    name: str = Field(min_length=1, max_length=100, description="Name of the server")
    description: str = Field(min_length=1, max_length=500, description="Description of the server")
    base_url: str = Field(description="HTTP or HTTPS base URL of the server")
    version: str = Field(default="", max_length=50)
    capabilities: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        parts = urlsplit(value)
        try:
            parts.port
        except ValueError:
            raise ValueError("Server base URL has an invalid port")
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise ValueError("Server base URL must be a valid HTTP or HTTPS URL")
        return value


class RegisterServerResponse(BaseModel):
    id: str
    message: str


class GetServersRequest(BaseModel):
    """Filter and pagination options for listing servers."""
    is_active: bool | None = None
    health: ServerHealth | None = None
    search_term: str | None = Field(default=None, max_length=200)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class GetServersResponse(BaseModel):
    servers: list[McpServerInfo] = Field(default_factory=list)
    total_count: int
    page: int
    page_size: int
    has_more: bool


class ForwardMcpRequest(BaseModel):
    """A single MCP method call addressed to one registered server."""
    server_id: str = Field(min_length=1)
    method: str = Field(min_length=1, max_length=100)
    parameters: dict[str, Any] = Field(default_factory=dict)
    tenant_id: str | None = Field(default=None, max_length=100)


class ForwardMcpResponse(BaseModel):
    success: bool
    data: Any | None = None
    error: str | None = None
    server_id: str
    response_time: datetime = Field(default_factory=utc_now)


class HealthCheckResponse(BaseModel):
    server_id: str
    health: ServerHealth
    message: str
    checked_at: datetime = Field(default_factory=utc_now)
    response_time_ms: float = 0.0


class DiscoverToolsRequest(BaseModel):
    """Tool discovery across registered servers."""
    search_term: str | None = Field(default=None, max_length=200)
    server_ids: list[str] = Field(default_factory=list)
    category: str | None = Field(default=None, max_length=100)

    @field_validator("server_ids")
    @classmethod
    def _check_server_ids(cls, value: list[str]) -> list[str]:
        if any(not server_id for server_id in value):
            raise ValueError("Server ID cannot be empty")
        return value


class ToolInfo(BaseModel):
    """A tool advertised by one MCP server."""
    name: str = ""
    description: str = ""
    server_id: str
    server_name: str
    input_schema: dict[str, Any] = Field(default_factory=dict)
    categories: list[str] = Field(default_factory=list)


class DiscoverToolsResponse(BaseModel):
    tools: list[ToolInfo] = Field(default_factory=list)
    total_count: int = 0
    server_counts: dict[str, int] = Field(default_factory=dict)
