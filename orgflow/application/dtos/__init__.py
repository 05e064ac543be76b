"""Application DTOs: commands and query models for use cases."""

from orgflow.application.dtos.workflow_instance import (
    DecisionCreate,
    OrganizationContext,
    WorkflowInstanceCreate,
    WorkflowInstanceQuery,
)
from orgflow.application.dtos.workflow_template import WorkflowTemplateCreate

__all__ = [
    "DecisionCreate",
    "OrganizationContext",
    "WorkflowInstanceCreate",
    "WorkflowInstanceQuery",
    "WorkflowTemplateCreate",
]
