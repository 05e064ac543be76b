"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from orgflow.api.v1.dependencies (no manual repo/service construction).
"""

from fastapi import APIRouter

from orgflow.api.v1.endpoints import health, workflow_instances, workflow_templates

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(
    workflow_templates.router,
    prefix="/workflow-templates",
    tags=["workflow-templates"],
)
api_router.include_router(
    workflow_instances.router,
    prefix="/workflow-instances",
    tags=["workflow-instances"],
)
