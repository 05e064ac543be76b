"""Workflow instance API: start, decide, cancel and inspect instances."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from orgflow.api.v1.dependencies import (
    get_department_id,
    get_organization_id,
    get_workflow_runtime,
    get_workflow_runtime_for_write,
)
from orgflow.application.dtos import WorkflowInstanceQuery
from orgflow.application.use_cases.workflow_instances import WorkflowRuntime
from orgflow.core.limiter import limit_writes
from orgflow.domain.enums import InstanceStatus
from orgflow.schemas.workflow_instance import (
    CancelRequest,
    DecisionRequest,
    WorkflowInstanceCreateRequest,
    WorkflowInstanceResponse,
    WorkflowInstanceSummaryResponse,
)

router = APIRouter()


@router.post("", response_model=WorkflowInstanceResponse, status_code=201)
@limit_writes
async def start_workflow_instance(
    request: Request,
    body: WorkflowInstanceCreateRequest,
    organization_id: Annotated[str, Depends(get_organization_id)],
    department_id: Annotated[str | None, Depends(get_department_id)],
    runtime: WorkflowRuntime = Depends(get_workflow_runtime_for_write),
):
    """Start an instance for a submitted object.

    The instance may already be terminal in the response when no step applies.
    """
    instance = await runtime.start_instance(
        body.to_command(organization_id, department_id)
    )
    return WorkflowInstanceResponse.model_validate(instance)


@router.get("", response_model=list[WorkflowInstanceSummaryResponse])
async def list_workflow_instances(
    organization_id: Annotated[str, Depends(get_organization_id)],
    runtime: WorkflowRuntime = Depends(get_workflow_runtime),
    status: InstanceStatus | None = Query(None),
    subject_type: str | None = Query(None, max_length=64),
    subject_id: str | None = Query(None, max_length=128),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List the organization's instances, newest first."""
    instances = await runtime.list_instances(
        WorkflowInstanceQuery(
            organization_id=organization_id,
            status=status,
            subject_type=subject_type,
            subject_id=subject_id,
            skip=skip,
            limit=limit,
        )
    )
    return [WorkflowInstanceSummaryResponse.model_validate(i) for i in instances]


@router.get("/{instance_id}", response_model=WorkflowInstanceResponse)
async def get_workflow_instance(
    instance_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    runtime: WorkflowRuntime = Depends(get_workflow_runtime),
):
    """Get an instance with its step history."""
    instance = await runtime.get_instance(instance_id, organization_id)
    return WorkflowInstanceResponse.model_validate(instance)


@router.post("/{instance_id}/decisions", response_model=WorkflowInstanceResponse)
@limit_writes
async def record_workflow_decision(
    request: Request,
    instance_id: str,
    body: DecisionRequest,
    organization_id: Annotated[str, Depends(get_organization_id)],
    runtime: WorkflowRuntime = Depends(get_workflow_runtime_for_write),
):
    """Record an approver's decision; the instance advances when the step resolves."""
    instance = await runtime.record_decision(body.to_command(organization_id, instance_id))
    return WorkflowInstanceResponse.model_validate(instance)


@router.post("/{instance_id}/cancel", response_model=WorkflowInstanceResponse)
@limit_writes
async def cancel_workflow_instance(
    request: Request,
    instance_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    runtime: WorkflowRuntime = Depends(get_workflow_runtime_for_write),
    body: CancelRequest | None = None,
):
    """Cancel an in-progress instance. Cancelling a cancelled instance is a no-op."""
    body = body or CancelRequest()
    instance = await runtime.cancel_instance(
        instance_id,
        organization_id,
        cancelled_by=body.cancelled_by,
        reason=body.reason,
    )
    return WorkflowInstanceResponse.model_validate(instance)
