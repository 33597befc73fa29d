import json
import os
from typing import Optional, Dict


def _load_headers(raw: Optional[str]) -> Dict[str, str]:
    headers = {}
    if raw:
        try:
            headers = json.loads(raw)
        except json.JSONDecodeError:
            headers = {}
    return headers


class Settings:
    """Central configuration for environment variables."""

    @property
    def api_root_path(self) -> str:
        return os.getenv("API_ROOT_PATH", "")

    @property
    def httpx_logging(self) -> bool:
        return os.getenv("HTTPX_LOGGING", "false").lower() == "true"

    @property
    def health_check_timeout(self) -> float:
        return float(os.getenv("HEALTH_CHECK_TIMEOUT", "10"))

    @property
    def forward_timeout(self) -> float:
        return float(os.getenv("FORWARD_TIMEOUT", "30"))

    @property
    def discovery_timeout(self) -> float:
        return float(os.getenv("DISCOVERY_TIMEOUT", "10"))

    @property
    def mcp_service_name(self) -> str:
        return os.getenv("MCP_SERVICE_NAME", "orchestrator")

    @property
    def orchestrator_auth_headers(self) -> Dict[str, str]:
        return _load_headers(os.getenv("ORCHESTRATOR_AUTH_HEADERS"))

    def get_mcp_auth_headers(self, service_name: str) -> Dict[str, str]:
        env_var_name = f"MCP_AUTH_HEADER_{service_name.upper().replace('-', '_').replace(' ', '_')}"
        mcp_auth_headers_str = os.getenv(env_var_name)
        if not mcp_auth_headers_str:
            mcp_auth_headers_str = os.getenv("MCP_AUTH_HEADER")
        return _load_headers(mcp_auth_headers_str)

settings = Settings()
