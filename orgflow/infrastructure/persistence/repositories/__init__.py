"""SQL repositories. Each returns domain entities, never ORM rows."""

from orgflow.infrastructure.persistence.repositories.membership_repo import (
    MembershipRepository,
)
from orgflow.infrastructure.persistence.repositories.workflow_instance_repo import (
    WorkflowInstanceRepository,
)
from orgflow.infrastructure.persistence.repositories.workflow_template_repo import (
    WorkflowTemplateRepository,
)

__all__ = [
    "MembershipRepository",
    "WorkflowInstanceRepository",
    "WorkflowTemplateRepository",
]
