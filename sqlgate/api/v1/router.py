"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from sqlgate.api.v1.dependencies (no manual repo/service construction).
"""

from fastapi import APIRouter

from sqlgate.api.v1.endpoints import (
    health,
    queries,
    query_policies,
    rbac,
    security_settings,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(rbac.router, prefix="/rbac", tags=["rbac"])
api_router.include_router(
    query_policies.router, prefix="/query-policies", tags=["query-policies"]
)
api_router.include_router(
    security_settings.router, prefix="/security-settings", tags=["security-settings"]
)
api_router.include_router(queries.router, prefix="/queries", tags=["queries"])
