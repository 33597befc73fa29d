"""On-demand liveness probing of registered MCP servers."""
import asyncio
import logging
import time

import httpx

from .config import settings
from .registry_server.model import HealthCheckResponse, ServerHealth
from .registry_server.storage import McpServerRegistry

logger = logging.getLogger(__name__)


class HealthProber:
    """Checks the /health endpoint of registered servers and records the verdict in the registry."""

    def __init__(self, registry: McpServerRegistry, timeout: float | None = None):
        """Initializes the HealthProber.

        Args:
            registry: The registry used to resolve servers and store verdicts.
            timeout: Seconds to wait for a health endpoint, defaults to HEALTH_CHECK_TIMEOUT.
        """
        self.registry = registry
        self.timeout = timeout if timeout is not None else settings.health_check_timeout

    async def probe(self, server_id: str) -> HealthCheckResponse:
        """Probes a single server and stores the verdict in the registry.

        Args:
            server_id: The id of the server to probe.

        Returns:
            The health verdict together with the elapsed time.
        """
        server = self.registry.get_server(server_id)
        if server is None:
            return HealthCheckResponse(server_id=server_id, health=ServerHealth.unhealthy,
                                       message="Server not found")

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout,
                                         headers=settings.get_mcp_auth_headers(server.name)) as client:
                response = await client.get(f"{server.base_url}/health")
            if response.is_success:
                health, message = ServerHealth.healthy, "Health check successful"
            else:
                health, message = ServerHealth.degraded, f"Health endpoint returned {response.status_code}"
        except httpx.TimeoutException:
            health, message = ServerHealth.unhealthy, "Health check timeout"
        except httpx.HTTPError as e:
            health, message = ServerHealth.unhealthy, f"Health check failed: {str(e) or type(e).__name__}"
        except Exception as e:
            logger.error(f"Unexpected error checking health of server {server_id}", exc_info=True)
            health, message = ServerHealth.unhealthy, f"Health check failed: {str(e) or type(e).__name__}"
        elapsed_ms = (time.monotonic() - start) * 1000

        self.registry.update_server_health(server_id, health, message)
        return HealthCheckResponse(server_id=server_id, health=health, message=message,
                                   response_time_ms=round(elapsed_ms, 2))

    async def probe_all(self) -> list[HealthCheckResponse]:
        """Probes every registered server concurrently, one result per server."""
        server_ids = [server.id for server in self.registry.get_all_servers()]
        results = await asyncio.gather(*(self.probe(server_id) for server_id in server_ids),
                                       return_exceptions=True)

        responses: list[HealthCheckResponse] = []
        for server_id, result in zip(server_ids, results):
            if isinstance(result, BaseException):
                logger.error(f"Unexpected error checking health of server {server_id}", exc_info=result)
                message = f"Health check failed: {result}"
                self.registry.update_server_health(server_id, ServerHealth.unhealthy, message)
                result = HealthCheckResponse(server_id=server_id, health=ServerHealth.unhealthy, message=message)
            responses.append(result)
        return responses
