"""Workflow template domain entities.

A template is an immutable, versioned definition: ordered steps, each with
conditions, approver actions and outcome transitions. Edits create a new
version in the same lineage; instances pin the exact version they started on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from orgflow.domain.enums import StepOutcome, TriggerType
from orgflow.domain.value_objects.workflow import Action, Condition, Transition


@dataclass(frozen=True)
class WorkflowStep:
    """One stage of a template. ``order`` is display metadata only."""

    step_name: str
    order: int
    description: str | None = None
    all_conditions_must_match: bool = True
    conditions: tuple[Condition, ...] = ()
    actions: tuple[Action, ...] = ()
    transitions: tuple[Transition, ...] = ()

    def transition_for(self, outcome: StepOutcome) -> Transition | None:
        """Return the transition declared for outcome, or None."""
        for transition in self.transitions:
            if transition.from_outcome == outcome:
                return transition
        return None


@dataclass(frozen=True)
class WorkflowTemplate:
    """Domain entity for a stored template version."""

    id: str
    organization_id: str
    department_id: str | None
    lineage_id: str
    version: int
    name: str
    description: str | None
    trigger_type: TriggerType
    is_active: bool
    initial_step_name: str
    steps: tuple[WorkflowStep, ...] = field(default_factory=tuple)
    created_at: datetime | None = None

    def get_step(self, step_name: str) -> WorkflowStep | None:
        """Return the step with step_name, or None."""
        for step in self.steps:
            if step.step_name == step_name:
                return step
        return None

    def belongs_to_organization(self, organization_id: str) -> bool:
        return self.organization_id == organization_id

    def can_start_automatically(self) -> bool:
        """Return whether submissions may pick this template without naming it."""
        return self.is_active and self.trigger_type == TriggerType.AUTOMATIC
