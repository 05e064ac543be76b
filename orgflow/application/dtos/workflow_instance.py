"""DTOs for workflow instance use cases."""

from dataclasses import dataclass, field

from orgflow.domain.enums import DecisionType, InstanceStatus
from orgflow.domain.value_objects.workflow import AttributeValue


@dataclass(frozen=True)
class OrganizationContext:
    """Tenant scope passed explicitly into actor resolution (no ambient tenant state)."""

    organization_id: str
    department_id: str | None = None
    submitted_by: str | None = None


@dataclass(frozen=True)
class WorkflowInstanceCreate:
    """Command: start an instance for a submitted object.

    template_id None selects the organization's active AUTOMATIC template.
    """

    organization_id: str
    subject_type: str
    subject_id: str
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    template_id: str | None = None
    department_id: str | None = None
    submitted_by: str | None = None


@dataclass(frozen=True)
class DecisionCreate:
    """Command: one actor's decision on a named step of an instance.

    step_name addresses the latest execution of that step; execution_id pins
    one execution when the step has been re-entered. A decision never falls
    through to whatever step happens to be open, so a retried request lands
    on the execution it was meant for.
    """

    organization_id: str
    instance_id: str
    actor_id: str
    decision: DecisionType
    step_name: str
    note: str | None = None
    execution_id: str | None = None


@dataclass(frozen=True)
class WorkflowInstanceQuery:
    """Filters for listing an organization's instances."""

    organization_id: str
    status: InstanceStatus | None = None
    subject_type: str | None = None
    subject_id: str | None = None
    skip: int = 0
    limit: int = 100
