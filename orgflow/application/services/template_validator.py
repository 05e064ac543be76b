"""Structural validation of workflow template definitions.

Runs on every template write. All problems are collected and raised together
as TemplateValidationException so nothing is persisted from an invalid
definition and the caller sees every error at once.
"""

from __future__ import annotations

from orgflow.application.dtos.workflow_template import WorkflowTemplateCreate
from orgflow.application.services.transition_engine import pass_through_transition
from orgflow.domain.entities.workflow_template import WorkflowStep
from orgflow.domain.enums import TRANSITION_TERMINAL_STATUSES, StepOutcome
from orgflow.domain.exceptions import TemplateValidationException
from orgflow.domain.value_objects.workflow import (
    AmountRangeCondition,
    ExpenseCategoryCondition,
    FieldEqualsCondition,
    LocationCondition,
    ReceiptRequiredCondition,
    RoleAction,
    SpecificMemberAction,
    Transition,
)

REQUIRED_OUTCOMES: tuple[StepOutcome, ...] = (StepOutcome.APPROVED, StepOutcome.REJECTED)


def _error(field: str, message: str) -> dict[str, str]:
    return {"field": field, "message": message}


def _validate_transition(
    path: str, transition: Transition, step_names: set[str]
) -> list[dict[str, str]]:
    errors: list[dict[str, str]] = []
    has_step = transition.to_step_name is not None
    has_terminal = transition.terminal_status is not None
    if has_step == has_terminal:
        errors.append(
            _error(path, "Transition must set exactly one of to_step_name or terminal_status")
        )
        return errors
    if has_step and transition.to_step_name not in step_names:
        errors.append(
            _error(
                f"{path}.to_step_name",
                f"Unknown target step '{transition.to_step_name}'",
            )
        )
    if has_terminal and transition.terminal_status not in TRANSITION_TERMINAL_STATUSES:
        errors.append(
            _error(
                f"{path}.terminal_status",
                "Terminal status must be APPROVED or REJECTED",
            )
        )
    return errors


def _validate_step(
    index: int, step: WorkflowStep, step_names: set[str]
) -> list[dict[str, str]]:
    errors: list[dict[str, str]] = []
    prefix = f"steps[{index}]"

    if not step.actions:
        errors.append(_error(f"{prefix}.actions", "Step must have at least one action"))
    for a_idx, action in enumerate(step.actions):
        path = f"{prefix}.actions[{a_idx}]"
        match action:
            case RoleAction(approver_role=role):
                if not role:
                    errors.append(_error(f"{path}.approver_role", "Role is required"))
            case SpecificMemberAction(member_id=member_id):
                if not member_id or not member_id.strip():
                    errors.append(_error(f"{path}.member_id", "Member id is required"))

    for c_idx, condition in enumerate(step.conditions):
        path = f"{prefix}.conditions[{c_idx}]"
        match condition:
            case AmountRangeCondition(min_amount=low, max_amount=high):
                if low is None and high is None:
                    errors.append(
                        _error(path, "Amount range needs min_amount or max_amount")
                    )
                elif low is not None and high is not None and low >= high:
                    errors.append(
                        _error(path, "min_amount must be less than max_amount")
                    )
            case ExpenseCategoryCondition(category=category):
                if not category or not category.strip():
                    errors.append(_error(f"{path}.category", "Category is required"))
            case LocationCondition(location_id=location_id):
                if not location_id or not location_id.strip():
                    errors.append(_error(f"{path}.location_id", "Location is required"))
            case FieldEqualsCondition(field=field_name):
                if not field_name or not field_name.strip():
                    errors.append(_error(f"{path}.field", "Field name is required"))
            case ReceiptRequiredCondition():
                pass

    seen_outcomes: set[StepOutcome] = set()
    for t_idx, transition in enumerate(step.transitions):
        path = f"{prefix}.transitions[{t_idx}]"
        if transition.from_outcome in seen_outcomes:
            errors.append(
                _error(
                    f"{path}.from_outcome",
                    f"Duplicate transition for outcome {transition.from_outcome.value}",
                )
            )
        seen_outcomes.add(transition.from_outcome)
        errors.extend(_validate_transition(path, transition, step_names))

    for outcome in REQUIRED_OUTCOMES:
        if outcome not in seen_outcomes:
            errors.append(
                _error(
                    f"{prefix}.transitions",
                    f"Step '{step.step_name}' has no {outcome.value} transition",
                )
            )
    return errors


def _successors(step: WorkflowStep, step_names: set[str]) -> set[str]:
    return {
        t.to_step_name
        for t in step.transitions
        if t.to_step_name is not None and t.to_step_name in step_names
    }


def _reachable_from(initial: str, by_name: dict[str, WorkflowStep]) -> set[str]:
    names = set(by_name)
    seen: set[str] = set()
    stack = [initial]
    while stack:
        name = stack.pop()
        if name in seen:
            continue
        seen.add(name)
        stack.extend(_successors(by_name[name], names) - seen)
    return seen


def _can_terminate(by_name: dict[str, WorkflowStep]) -> set[str]:
    """Return names of steps with some path to a terminal transition."""
    names = set(by_name)
    done = {
        name
        for name, step in by_name.items()
        if any(t.terminal_status is not None for t in step.transitions)
    }
    changed = True
    while changed:
        changed = False
        for name, step in by_name.items():
            if name not in done and _successors(step, names) & done:
                done.add(name)
                changed = True
    return done


def _pass_through_cycle(by_name: dict[str, WorkflowStep]) -> list[str] | None:
    """Return the step names of a cycle in pass-through edges, if any.

    Only steps with conditions can be skipped; a step without conditions
    always applies, so a pass-through path stops there.
    """
    finished: set[str] = set()
    for start in by_name:
        path: list[str] = []
        on_path: set[str] = set()
        current: str | None = start
        while current is not None and current in by_name and current not in finished:
            if current in on_path:
                return path[path.index(current):]
            path.append(current)
            on_path.add(current)
            step = by_name[current]
            transition = pass_through_transition(step) if step.conditions else None
            current = transition.to_step_name if transition else None
        finished.update(path)
    return None


def collect_template_errors(data: WorkflowTemplateCreate) -> list[dict[str, str]]:
    """Return every structural problem in the definition (empty when valid)."""
    errors: list[dict[str, str]] = []

    if not data.name or not data.name.strip():
        errors.append(_error("name", "Name is required"))
    if not data.steps:
        errors.append(_error("steps", "Template must have at least one step"))
        return errors

    by_name: dict[str, WorkflowStep] = {}
    for index, step in enumerate(data.steps):
        if not step.step_name or not step.step_name.strip():
            errors.append(_error(f"steps[{index}].step_name", "Step name is required"))
            continue
        if step.step_name in by_name:
            errors.append(
                _error(
                    f"steps[{index}].step_name",
                    f"Duplicate step name '{step.step_name}'",
                )
            )
            continue
        by_name[step.step_name] = step

    step_names = set(by_name)
    if data.initial_step_name not in step_names:
        errors.append(
            _error(
                "initial_step_name",
                f"Initial step '{data.initial_step_name}' does not match any step",
            )
        )

    for index, step in enumerate(data.steps):
        errors.extend(_validate_step(index, step, step_names))

    # Graph checks over the uniquely named steps.
    if data.initial_step_name in step_names:
        reachable = _reachable_from(data.initial_step_name, by_name)
        for name in by_name:
            if name not in reachable:
                errors.append(
                    _error("steps", f"Step '{name}' is unreachable from the initial step")
                )

    terminating = _can_terminate(by_name)
    for name in by_name:
        if name not in terminating:
            errors.append(
                _error(
                    "steps",
                    f"Non-terminating workflow: step '{name}' has no path to a terminal status",
                )
            )

    cycle = _pass_through_cycle(by_name)
    if cycle:
        errors.append(
            _error(
                "steps",
                "Skipped steps form a cycle: " + " -> ".join([*cycle, cycle[0]]),
            )
        )
    return errors


def validate_template_definition(data: WorkflowTemplateCreate) -> None:
    """Raise TemplateValidationException listing every problem, or return when valid."""
    errors = collect_template_errors(data)
    if errors:
        raise TemplateValidationException(errors)
