"""Workflow instance API schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from orgflow.application.dtos import DecisionCreate, WorkflowInstanceCreate
from orgflow.domain.enums import ApprovalMode, DecisionType, InstanceStatus, StepOutcome
from orgflow.schemas.values import AttributeValueSchema


class WorkflowInstanceCreateRequest(BaseModel):
    """Request body for starting an instance for a submitted object.

    Omit template_id to use the organization's active AUTOMATIC template for
    department_id (or the X-Department-ID header).
    """

    subject_type: str = Field(..., min_length=1, max_length=64)
    subject_id: str = Field(..., min_length=1, max_length=128)
    template_id: str | None = None
    department_id: str | None = Field(default=None, max_length=64)
    submitted_by: str | None = Field(default=None, max_length=64)
    attributes: dict[str, AttributeValueSchema] = Field(default_factory=dict)

    def to_command(
        self, organization_id: str, department_id: str | None = None
    ) -> WorkflowInstanceCreate:
        return WorkflowInstanceCreate(
            organization_id=organization_id,
            subject_type=self.subject_type,
            subject_id=self.subject_id,
            attributes=dict(self.attributes),
            template_id=self.template_id,
            department_id=self.department_id or department_id,
            submitted_by=self.submitted_by,
        )


class DecisionRequest(BaseModel):
    """Request body for an approver's decision on a named step.

    step_name is the step the approver was shown; execution_id (from
    step_executions[].id) pins one pass through a step that was re-entered.
    """

    actor_id: str = Field(..., min_length=1, max_length=64)
    decision: DecisionType
    step_name: str = Field(..., min_length=1, max_length=128)
    execution_id: str | None = Field(default=None, max_length=64)
    note: str | None = Field(default=None, max_length=2000)

    def to_command(self, organization_id: str, instance_id: str) -> DecisionCreate:
        return DecisionCreate(
            organization_id=organization_id,
            instance_id=instance_id,
            actor_id=self.actor_id,
            decision=self.decision,
            step_name=self.step_name,
            note=self.note,
            execution_id=self.execution_id,
        )


class CancelRequest(BaseModel):
    """Request body for cancelling an in-progress instance."""

    cancelled_by: str | None = Field(default=None, max_length=64)
    reason: str | None = Field(default=None, max_length=2000)


class ActorGroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action_index: int
    approval_mode: ApprovalMode
    actor_ids: list[str]


class DecisionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    actor_id: str
    decision: DecisionType
    note: str | None
    decided_at: datetime


class StepExecutionResponse(BaseModel):
    """One step's lifetime: snapshot of required actors and recorded decisions."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    sequence: int
    step_name: str
    outcome: StepOutcome | None
    entered_at: datetime
    resolved_at: datetime | None
    required_actor_ids: list[str]
    actor_groups: list[ActorGroupResponse]
    decisions: list[DecisionResponse]


class WorkflowInstanceResponse(BaseModel):
    """Workflow instance with its full step history."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    department_id: str | None
    template_id: str
    template_version: int
    subject_type: str
    subject_id: str
    submitted_by: str | None
    attributes: dict[str, AttributeValueSchema]
    status: InstanceStatus
    current_step_name: str | None
    version: int
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None
    cancelled_by: str | None
    cancellation_reason: str | None
    step_executions: list[StepExecutionResponse]


class WorkflowInstanceSummaryResponse(BaseModel):
    """Instance row for list endpoints (no step history)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    template_id: str
    template_version: int
    subject_type: str
    subject_id: str
    status: InstanceStatus
    current_step_name: str | None
    created_at: datetime
    completed_at: datetime | None
