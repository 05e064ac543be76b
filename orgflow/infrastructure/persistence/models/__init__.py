"""Persistence models: ORM entities and mixins."""

from orgflow.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationMixin,
    OrganizationModel,
    TimestampMixin,
    VersionedMixin,
)
from orgflow.infrastructure.persistence.models.organization_member import (
    OrganizationMember,
)
from orgflow.infrastructure.persistence.models.workflow_instance import (
    StepDecision,
    StepExecution,
    StepExecutionActor,
    StepExecutionActorGroup,
    WorkflowInstance,
    WorkflowInstanceAttribute,
)
from orgflow.infrastructure.persistence.models.workflow_template import (
    WorkflowStep,
    WorkflowStepAction,
    WorkflowStepCondition,
    WorkflowStepTransition,
    WorkflowTemplate,
)

__all__ = [
    "CuidMixin",
    "OrganizationMember",
    "OrganizationMixin",
    "OrganizationModel",
    "StepDecision",
    "StepExecution",
    "StepExecutionActor",
    "StepExecutionActorGroup",
    "TimestampMixin",
    "VersionedMixin",
    "WorkflowInstance",
    "WorkflowInstanceAttribute",
    "WorkflowStep",
    "WorkflowStepAction",
    "WorkflowStepCondition",
    "WorkflowStepTransition",
    "WorkflowTemplate",
]
