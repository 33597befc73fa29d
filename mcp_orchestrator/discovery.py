"""Tool discovery across registered MCP servers."""
import asyncio
import logging
from typing import Any

from .config import settings
from .forwarding import CallForwarder
from .registry_server.model import (DiscoverToolsRequest, DiscoverToolsResponse, ForwardMcpRequest, McpServerInfo,
                                    ToolInfo)
from .registry_server.storage import McpServerRegistry

logger = logging.getLogger(__name__)

TOOLS_LIST_METHOD = "tools/list"


def parse_tools(server: McpServerInfo, result: Any) -> list[ToolInfo]:
    """Extracts tool descriptors from the result of a tools/list call.

    Entries that are not JSON objects are skipped. Every tool is stamped with
    the owning server's id and name.
    """
    if not isinstance(result, dict) or not isinstance(result.get("tools"), list):
        raise ValueError("tools/list result carries no tools array")

    tools = []
    for raw_tool in result["tools"]:
        if not isinstance(raw_tool, dict):
            continue
        categories: list[str] = []
        if isinstance(raw_tool.get("category"), str) and raw_tool["category"]:
            categories.append(raw_tool["category"])
        if isinstance(raw_tool.get("categories"), list):
            categories.extend(c for c in raw_tool["categories"] if isinstance(c, str) and c)
        schema = raw_tool.get("inputSchema")
        tools.append(ToolInfo(
            name=raw_tool.get("name") or "",
            description=raw_tool.get("description") or "",
            server_id=server.id,
            server_name=server.name,
            input_schema=schema if isinstance(schema, dict) else {},
            categories=categories,
        ))
    return tools


def filter_tools(tools: list[ToolInfo], search_term: str | None, category: str | None) -> list[ToolInfo]:
    if search_term:
        term = search_term.lower()
        tools = [t for t in tools if term in t.name.lower() or term in t.description.lower()]
    if category:
        wanted = category.lower()
        tools = [t for t in tools if any(c.lower() == wanted for c in t.categories)]
    return tools


class ToolDiscoveryAggregator:
    """Fans a tools/list call out to active servers and merges the results."""

    def __init__(self, registry: McpServerRegistry, forwarder: CallForwarder, timeout: float | None = None):
        """Initializes the ToolDiscoveryAggregator.

        Args:
            registry: The registry used to select candidate servers.
            forwarder: The forwarder performing the per-server calls.
            timeout: Seconds to wait for each server, defaults to DISCOVERY_TIMEOUT.
        """
        self.registry = registry
        self.forwarder = forwarder
        self.timeout = timeout if timeout is not None else settings.discovery_timeout

    async def discover(self, request: DiscoverToolsRequest) -> DiscoverToolsResponse:
        """Discovers tools across active servers.

        Args:
            request: Optional server subset, search term and category filters.

        Returns:
            The merged tools in server order and the per-server tool counts after filtering.
            A server that fails contributes zero tools.
        """
        servers = self.registry.get_all_servers(active_only=True)
        if request.server_ids:
            wanted = set(request.server_ids)
            servers = [s for s in servers if s.id in wanted]

        results = await asyncio.gather(*(self._discover_server(server) for server in servers))

        all_tools: list[ToolInfo] = []
        server_counts: dict[str, int] = {}
        for server, tools in zip(servers, results):
            tools = filter_tools(tools, request.search_term, request.category)
            all_tools.extend(tools)
            server_counts[server.id] = len(tools)

        return DiscoverToolsResponse(tools=all_tools, total_count=len(all_tools), server_counts=server_counts)

    async def _discover_server(self, server: McpServerInfo) -> list[ToolInfo]:
        try:
            response = await self.forwarder.forward(
                ForwardMcpRequest(server_id=server.id, method=TOOLS_LIST_METHOD), timeout=self.timeout)
            if not response.success:
                logger.debug(f"Failed to discover tools from server {server.id} ({server.name}): {response.error}")
                return []
            return parse_tools(server, response.data)
        except Exception as e:
            logger.warning(f"Failed to discover tools from server {server.id} ({server.name}): {e}")
            return []
