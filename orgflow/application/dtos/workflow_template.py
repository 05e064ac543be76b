"""DTOs for workflow template use cases."""

from dataclasses import dataclass

from orgflow.domain.entities.workflow_template import WorkflowStep
from orgflow.domain.enums import TriggerType


@dataclass(frozen=True)
class WorkflowTemplateCreate:
    """Command: a template definition to validate and store (new lineage or new version)."""

    organization_id: str
    name: str
    initial_step_name: str
    steps: tuple[WorkflowStep, ...]
    department_id: str | None = None
    description: str | None = None
    trigger_type: TriggerType = TriggerType.MANUAL
    is_active: bool = True
