"""Workflow template API: thin routes delegating to WorkflowTemplateService."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from orgflow.api.v1.dependencies import (
    get_organization_id,
    get_template_service,
    get_template_service_for_write,
)
from orgflow.application.use_cases.workflow_templates import WorkflowTemplateService
from orgflow.core.limiter import limit_writes
from orgflow.schemas.workflow_template import (
    WorkflowTemplateCreateRequest,
    WorkflowTemplateResponse,
)

router = APIRouter()


@router.post("", response_model=WorkflowTemplateResponse, status_code=201)
@limit_writes
async def create_workflow_template(
    request: Request,
    body: WorkflowTemplateCreateRequest,
    organization_id: Annotated[str, Depends(get_organization_id)],
    service: WorkflowTemplateService = Depends(get_template_service_for_write),
):
    """Validate and store version 1 of a new template."""
    template = await service.create_template(body.to_command(organization_id))
    return WorkflowTemplateResponse.from_entity(template)


@router.get("", response_model=list[WorkflowTemplateResponse])
async def list_workflow_templates(
    organization_id: Annotated[str, Depends(get_organization_id)],
    service: WorkflowTemplateService = Depends(get_template_service),
    department_id: str | None = Query(None, max_length=64),
    include_inactive: bool = Query(False),
):
    """List the organization's templates (active only unless include_inactive)."""
    templates = await service.list_templates(
        organization_id,
        department_id=department_id,
        include_inactive=include_inactive,
    )
    return [WorkflowTemplateResponse.from_entity(t) for t in templates]


@router.get("/{template_id}", response_model=WorkflowTemplateResponse)
async def get_workflow_template(
    template_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    service: WorkflowTemplateService = Depends(get_template_service),
):
    """Get a template version by id."""
    template = await service.get_template(template_id, organization_id)
    return WorkflowTemplateResponse.from_entity(template)


@router.post(
    "/{template_id}/versions",
    response_model=WorkflowTemplateResponse,
    status_code=201,
)
@limit_writes
async def revise_workflow_template(
    request: Request,
    template_id: str,
    body: WorkflowTemplateCreateRequest,
    organization_id: Annotated[str, Depends(get_organization_id)],
    service: WorkflowTemplateService = Depends(get_template_service_for_write),
):
    """Store a new version of the template; running instances keep their version."""
    template = await service.revise_template(
        template_id, organization_id, body.to_command(organization_id)
    )
    return WorkflowTemplateResponse.from_entity(template)


@router.post("/{template_id}/activate", response_model=WorkflowTemplateResponse)
@limit_writes
async def activate_workflow_template(
    request: Request,
    template_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    service: WorkflowTemplateService = Depends(get_template_service_for_write),
):
    """Allow new instances to start on this version."""
    template = await service.set_template_active(template_id, organization_id, True)
    return WorkflowTemplateResponse.from_entity(template)


@router.post("/{template_id}/deactivate", response_model=WorkflowTemplateResponse)
@limit_writes
async def deactivate_workflow_template(
    request: Request,
    template_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    service: WorkflowTemplateService = Depends(get_template_service_for_write),
):
    """Stop new instances from starting on this version."""
    template = await service.set_template_active(template_id, organization_id, False)
    return WorkflowTemplateResponse.from_entity(template)
