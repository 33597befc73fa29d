"""Tenant id lookup for inbound HTTP requests."""
from fastapi import Request

TENANT_ID_PARAM = "tenantId"
TENANT_ID_HEADER = "X-Tenant-Id"


def get_tenant_id(request: Request) -> str:
    """Returns the tenant id from the query string, path or header, or an empty string."""
    tenant_id = request.query_params.get(TENANT_ID_PARAM)
    if tenant_id:
        return tenant_id

    path_tenant_id = request.path_params.get(TENANT_ID_PARAM)
    if path_tenant_id is not None:
        return str(path_tenant_id)

    return request.headers.get(TENANT_ID_HEADER) or ""
