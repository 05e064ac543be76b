"""Transition engine: maps a resolved step outcome to the next state.

Pure functions over a template version. A missing transition on a stored
template means validation was bypassed; it is surfaced as
WorkflowConsistencyException, never silently treated as completion.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from orgflow.application.services.condition_evaluator import matches
from orgflow.domain.entities.workflow_template import WorkflowStep, WorkflowTemplate
from orgflow.domain.enums import InstanceStatus, StepOutcome
from orgflow.domain.exceptions import WorkflowConsistencyException
from orgflow.domain.value_objects.workflow import AttributeValue, Transition


@dataclass(frozen=True)
class StepTarget:
    """Continue at step."""

    step: WorkflowStep


@dataclass(frozen=True)
class TerminalTarget:
    """End the instance with status."""

    status: InstanceStatus


Target = StepTarget | TerminalTarget


@dataclass(frozen=True)
class WalkResult:
    """First applicable step (or terminal status) plus the steps skipped on the way."""

    target: Target
    skipped: tuple[str, ...] = ()


def _resolve(
    template: WorkflowTemplate, step: WorkflowStep, transition: Transition
) -> Target:
    if transition.terminal_status is not None:
        return TerminalTarget(transition.terminal_status)
    if transition.to_step_name is None:
        raise WorkflowConsistencyException(
            f"Transition on step '{step.step_name}' has no target",
            template_id=template.id,
            step_name=step.step_name,
        )
    target = template.get_step(transition.to_step_name)
    if target is None:
        raise WorkflowConsistencyException(
            f"Transition on step '{step.step_name}' targets unknown step "
            f"'{transition.to_step_name}'",
            template_id=template.id,
            step_name=step.step_name,
            to_step_name=transition.to_step_name,
        )
    return StepTarget(target)


def next_target(
    template: WorkflowTemplate, step: WorkflowStep, outcome: StepOutcome
) -> Target:
    """Return where the instance goes when step resolves with outcome."""
    transition = step.transition_for(outcome)
    if transition is None:
        raise WorkflowConsistencyException(
            f"Step '{step.step_name}' has no transition for outcome {outcome.value}",
            template_id=template.id,
            step_name=step.step_name,
            outcome=outcome.value,
        )
    return _resolve(template, step, transition)


def pass_through_transition(step: WorkflowStep) -> Transition | None:
    """Return the transition a non-matching step follows.

    The SKIPPED transition when declared, otherwise the APPROVED one
    (a non-applicable step passes).
    """
    return step.transition_for(StepOutcome.SKIPPED) or step.transition_for(
        StepOutcome.APPROVED
    )


def walk_to_applicable_step(
    template: WorkflowTemplate,
    start: WorkflowStep,
    attributes: Mapping[str, AttributeValue],
) -> WalkResult:
    """Skip forward from start through steps whose conditions do not match.

    The walk is bounded by the number of steps; exceeding it means the
    stored template has a pass-through cycle.
    """
    skipped: list[str] = []
    step = start
    for _ in range(len(template.steps) + 1):
        if matches(step, attributes):
            return WalkResult(StepTarget(step), tuple(skipped))
        skipped.append(step.step_name)
        transition = pass_through_transition(step)
        if transition is None:
            raise WorkflowConsistencyException(
                f"Step '{step.step_name}' does not apply and has no pass-through transition",
                template_id=template.id,
                step_name=step.step_name,
            )
        target = _resolve(template, step, transition)
        if isinstance(target, TerminalTarget):
            return WalkResult(target, tuple(skipped))
        step = target.step
    raise WorkflowConsistencyException(
        "Skip-forward walk did not terminate",
        template_id=template.id,
        skipped=skipped,
    )
