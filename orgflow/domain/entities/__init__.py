"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from orgflow.domain.entities.workflow_instance import (
    ActorGroup,
    DecisionRecord,
    StepExecution,
    WorkflowInstance,
)
from orgflow.domain.entities.workflow_template import WorkflowStep, WorkflowTemplate

__all__ = [
    "ActorGroup",
    "DecisionRecord",
    "StepExecution",
    "WorkflowInstance",
    "WorkflowStep",
    "WorkflowTemplate",
]
