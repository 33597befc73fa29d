"""Forwarding of MCP method calls to registered servers."""
import json
import logging
import uuid
from typing import Any

import httpx

from .config import settings
from .registry_server.model import ForwardMcpRequest, ForwardMcpResponse, McpServerInfo, ServerHealth
from .registry_server.storage import McpServerRegistry

logger = logging.getLogger(__name__)

if settings.httpx_logging:
    logging.getLogger("httpx").setLevel(logging.DEBUG)


def mcp_endpoint(server: McpServerInfo) -> str:
    """Returns the JSON-RPC endpoint of a registered server."""
    return f"{server.base_url}/api/{server.name}/mcp"


def _error_text(error: Any) -> str:
    if isinstance(error, str):
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return json.dumps(error) if error is not None else "Unknown MCP error"


def to_forward_response(server_id: str, payload: Any) -> ForwardMcpResponse:
    """Interprets a decoded JSON-RPC response body.

    An ``error`` member wins over ``result``; a body carrying neither is passed
    through whole.

    Args:
        server_id: The id of the server that produced the payload.
        payload: The decoded JSON body.

    Returns:
        The normalized forwarding outcome.
    """
    if isinstance(payload, dict) and "error" in payload:
        return ForwardMcpResponse(success=False, error=_error_text(payload["error"]), data=payload,
                                  server_id=server_id)
    if isinstance(payload, dict) and "result" in payload:
        return ForwardMcpResponse(success=True, data=payload["result"], server_id=server_id)
    return ForwardMcpResponse(success=True, data=payload, server_id=server_id)


class CallForwarder:
    """Sends single JSON-RPC calls to eligible registered servers."""

    def __init__(self, registry: McpServerRegistry, timeout: float | None = None):
        """Initializes the CallForwarder.

        Args:
            registry: The registry used to resolve target servers.
            timeout: Default seconds to wait for a forwarded call, defaults to FORWARD_TIMEOUT.
        """
        self.registry = registry
        self.timeout = timeout if timeout is not None else settings.forward_timeout

    async def forward(self, request: ForwardMcpRequest, timeout: float | None = None) -> ForwardMcpResponse:
        """Forwards one MCP call to the server named in the request.

        Args:
            request: The call envelope.
            timeout: Seconds to wait for this call, overriding the forwarder default.

        Returns:
            The outcome of the call, never raising for remote or transport failures.
        """
        server_id = request.server_id
        server = self.registry.get_server(server_id)
        if server is None:
            return ForwardMcpResponse(success=False, error=f"Server '{server_id}' not found", server_id=server_id)

        if not server.is_active or server.health == ServerHealth.unhealthy:
            return ForwardMcpResponse(
                success=False,
                error=f"Server '{server_id}' is not available (active: {server.is_active}, health: {server.health.value})",
                server_id=server_id)

        target_url = mcp_endpoint(server)
        params = {"tenantId": request.tenant_id} if request.tenant_id else None
        mcp_request = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": request.method,
            "params": request.parameters,
        }

        logger.debug(f"Forwarding MCP call to {target_url}: {request.method}")
        try:
            async with httpx.AsyncClient(timeout=timeout if timeout is not None else self.timeout,
                                         headers=settings.get_mcp_auth_headers(server.name)) as client:
                response = await client.post(target_url, params=params, json=mcp_request)
        except httpx.TimeoutException:
            logger.warning(f"Timed out forwarding {request.method} to server {server_id}")
            return ForwardMcpResponse(success=False, error="Request timeout", server_id=server_id)
        except httpx.HTTPError as e:
            logger.warning(f"Error forwarding MCP call to server {server_id}: {e!r}")
            return ForwardMcpResponse(success=False, error=f"Forwarding failed: {str(e) or type(e).__name__}",
                                      server_id=server_id)
        except Exception as e:
            logger.error(f"Unexpected error forwarding MCP call to server {server_id}", exc_info=True)
            return ForwardMcpResponse(success=False, error=f"Forwarding failed: {str(e) or type(e).__name__}",
                                      server_id=server_id)

        if not response.is_success:
            logger.warning(f"Server {server_id} answered {request.method} with HTTP {response.status_code}")
            return ForwardMcpResponse(success=False, error=f"HTTP {response.status_code}: {response.text}",
                                      server_id=server_id)

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Server {server_id} returned a non JSON body for {request.method}")
            return ForwardMcpResponse(success=False, error=f"Invalid JSON response: {e}", server_id=server_id)

        return to_forward_response(server_id, payload)
