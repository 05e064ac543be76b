"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from orgflow.domain.entities import (
    ActorGroup,
    DecisionRecord,
    StepExecution,
    WorkflowInstance,
    WorkflowStep,
    WorkflowTemplate,
)
from orgflow.domain.enums import (
    ActionType,
    ApprovalMode,
    ConditionType,
    DecisionType,
    InstanceStatus,
    MemberRole,
    StepOutcome,
    TriggerType,
)
from orgflow.domain.exceptions import (
    ApproverAuthorizationException,
    OrgflowException,
    ResolutionException,
    ResourceNotFoundException,
    TemplateValidationException,
    ValidationException,
    WorkflowConflictException,
    WorkflowConsistencyException,
)

__all__ = [
    # Entities
    "ActorGroup",
    "DecisionRecord",
    "StepExecution",
    "WorkflowInstance",
    "WorkflowStep",
    "WorkflowTemplate",
    # Enums
    "ActionType",
    "ApprovalMode",
    "ConditionType",
    "DecisionType",
    "InstanceStatus",
    "MemberRole",
    "StepOutcome",
    "TriggerType",
    # Exceptions
    "ApproverAuthorizationException",
    "OrgflowException",
    "ResolutionException",
    "ResourceNotFoundException",
    "TemplateValidationException",
    "ValidationException",
    "WorkflowConflictException",
    "WorkflowConsistencyException",
]
