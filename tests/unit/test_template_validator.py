"""Tests for structural template validation (every error is collected)."""

from decimal import Decimal

import pytest

from orgflow.application.dtos import WorkflowTemplateCreate
from orgflow.application.services.template_validator import (
    collect_template_errors,
    validate_template_definition,
)
from orgflow.domain.entities import WorkflowStep
from orgflow.domain.enums import InstanceStatus, MemberRole, StepOutcome
from orgflow.domain.exceptions import TemplateValidationException
from orgflow.domain.value_objects.workflow import (
    AmountRangeCondition,
    ExpenseCategoryCondition,
    SpecificMemberAction,
    Transition,
)
from tests.support.builders import ORG, definition, expense_definition, role, step

LARGE = (AmountRangeCondition(min_amount=Decimal("1000")),)
TRAVEL = (ExpenseCategoryCondition(category="travel"),)


def _messages(errors: list[dict[str, str]]) -> list[str]:
    return [e["message"] for e in errors]


def test_valid_definition_has_no_errors() -> None:
    assert collect_template_errors(expense_definition()) == []
    validate_template_definition(expense_definition())


def test_template_without_steps() -> None:
    data = WorkflowTemplateCreate(
        organization_id=ORG, name="Empty", initial_step_name="x", steps=()
    )
    assert collect_template_errors(data) == [
        {"field": "steps", "message": "Template must have at least one step"}
    ]


def test_unknown_initial_step_and_blank_name_are_both_reported() -> None:
    data = definition(step("a"), name=" ", initial="missing")
    fields = {e["field"] for e in collect_template_errors(data)}
    assert {"name", "initial_step_name"} <= fields


def test_duplicate_step_names() -> None:
    errors = collect_template_errors(definition(step("a"), step("a")))
    assert "Duplicate step name 'a'" in _messages(errors)


def test_transition_to_unknown_step() -> None:
    errors = collect_template_errors(definition(step("a", on_approve="nowhere")))
    assert errors[0]["field"] == "steps[0].transitions[0].to_step_name"
    assert "Unknown target step 'nowhere'" in errors[0]["message"]


def test_missing_rejected_transition() -> None:
    only_approve = WorkflowStep(
        step_name="a",
        order=0,
        actions=(role(MemberRole.MANAGER),),
        transitions=(
            Transition(
                from_outcome=StepOutcome.APPROVED,
                terminal_status=InstanceStatus.APPROVED,
            ),
        ),
    )
    errors = collect_template_errors(definition(only_approve))
    assert "Step 'a' has no REJECTED transition" in _messages(errors)


def test_transition_must_set_exactly_one_target() -> None:
    ambiguous = WorkflowStep(
        step_name="a",
        order=0,
        actions=(role(MemberRole.MANAGER),),
        transitions=(
            Transition(
                from_outcome=StepOutcome.APPROVED,
                to_step_name="a",
                terminal_status=InstanceStatus.APPROVED,
            ),
            Transition(from_outcome=StepOutcome.REJECTED),
        ),
    )
    errors = collect_template_errors(definition(ambiguous))
    assert len([m for m in _messages(errors) if "exactly one" in m]) == 2


def test_cancelled_is_not_a_transition_status() -> None:
    errors = collect_template_errors(
        definition(step("a", on_reject=InstanceStatus.CANCELLED))
    )
    assert "Terminal status must be APPROVED or REJECTED" in _messages(errors)


def test_duplicate_outcome() -> None:
    base = step("a")
    dup = WorkflowStep(
        step_name="a",
        order=0,
        actions=base.actions,
        transitions=base.transitions + (base.transitions[0],),
    )
    errors = collect_template_errors(definition(dup))
    assert "Duplicate transition for outcome APPROVED" in _messages(errors)


def test_step_needs_an_action() -> None:
    bare = WorkflowStep(step_name="a", order=0, transitions=step("a").transitions)
    errors = collect_template_errors(definition(bare))
    assert {"field": "steps[0].actions", "message": "Step must have at least one action"} in errors


def test_condition_and_action_field_errors() -> None:
    bad = WorkflowStep(
        step_name="a",
        order=0,
        conditions=(
            AmountRangeCondition(min_amount=Decimal("10"), max_amount=Decimal("10")),
            AmountRangeCondition(),
            ExpenseCategoryCondition(category=""),
        ),
        actions=(SpecificMemberAction(member_id=" "),),
        transitions=step("a").transitions,
    )
    messages = _messages(collect_template_errors(definition(bad)))
    assert "min_amount must be less than max_amount" in messages
    assert "Amount range needs min_amount or max_amount" in messages
    assert "Category is required" in messages
    assert "Member id is required" in messages


def test_unreachable_step() -> None:
    errors = collect_template_errors(definition(step("a"), step("orphan")))
    assert "Step 'orphan' is unreachable from the initial step" in _messages(errors)


def test_non_terminating_workflow() -> None:
    data = definition(
        step("a", on_approve="b", on_reject="b"),
        step("b", on_approve="a", on_reject="a"),
    )
    messages = _messages(collect_template_errors(data))
    assert any(m.startswith("Non-terminating workflow") for m in messages)


def test_pass_through_cycle_is_rejected() -> None:
    data = definition(
        step("a", on_approve="b", conditions=LARGE),
        step("b", on_approve="a", conditions=TRAVEL),
    )
    messages = _messages(collect_template_errors(data))
    assert "Skipped steps form a cycle: a -> b -> a" in messages


def test_cycle_of_unconditional_steps_is_allowed() -> None:
    """Steps without conditions always apply, so the walk never loops through them."""
    data = definition(
        step("a", on_approve="b"),
        step("b", on_approve="a"),
    )
    assert collect_template_errors(data) == []


def test_cycle_broken_by_one_unconditional_step_is_allowed() -> None:
    data = definition(
        step("a", on_approve="b", conditions=LARGE),
        step("b", on_approve="c", conditions=TRAVEL),
        step("c", on_approve="a"),
    )
    assert collect_template_errors(data) == []


def test_rework_loop_is_allowed() -> None:
    """Rejection sending work back to an earlier step is a legitimate cycle."""
    data = definition(
        step("review", on_reject="rework"),
        step("rework", on_approve="review", on_skip="review"),
    )
    assert collect_template_errors(data) == []


def test_validate_raises_with_all_errors() -> None:
    data = definition(step("a", on_approve="x", on_reject="y"), name="")
    with pytest.raises(TemplateValidationException) as exc_info:
        validate_template_definition(data)
    exc = exc_info.value
    assert exc.error_code == "TEMPLATE_VALIDATION_ERROR"
    assert len(exc.errors) >= 3
    assert exc.message.startswith("Name is required (and ")
