"""Property tests over randomly generated step graphs and attribute maps."""

from __future__ import annotations

from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from orgflow.application.dtos import WorkflowTemplateCreate
from orgflow.application.services.condition_evaluator import matches
from orgflow.application.services.template_validator import collect_template_errors
from orgflow.application.services.transition_engine import (
    StepTarget,
    TerminalTarget,
    next_target,
    walk_to_applicable_step,
)
from orgflow.domain.entities import WorkflowStep
from orgflow.domain.enums import InstanceStatus, MemberRole, StepOutcome
from orgflow.domain.value_objects.workflow import (
    AmountRangeCondition,
    ExpenseCategoryCondition,
    FieldEqualsCondition,
    ReceiptRequiredCondition,
    Transition,
)
from tests.support.builders import ORG, as_template, role

amounts = st.decimals(
    min_value=Decimal("-100"),
    max_value=Decimal("100000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

attribute_values = st.one_of(
    st.none(),
    st.booleans(),
    st.decimals(allow_nan=True, allow_infinity=True),
    st.text(max_size=10),
)

conditions = st.one_of(
    st.builds(lambda low: AmountRangeCondition(min_amount=low), amounts),
    st.builds(lambda high: AmountRangeCondition(max_amount=high), amounts),
    st.sampled_from(["travel", "meals"]).map(lambda c: ExpenseCategoryCondition(category=c)),
    st.just(ReceiptRequiredCondition()),
    st.builds(
        lambda v: FieldEqualsCondition(field="project", value=v),
        st.one_of(st.booleans(), amounts, st.text(min_size=1, max_size=5)),
    ),
)


@st.composite
def step_graphs(draw) -> WorkflowTemplateCreate:
    """Draw a template of 1-6 steps whose transitions point anywhere (valid or not)."""
    count = draw(st.integers(min_value=1, max_value=6))
    names = [f"s{i}" for i in range(count)]
    targets = st.one_of(
        st.sampled_from(names),
        st.sampled_from([InstanceStatus.APPROVED, InstanceStatus.REJECTED]),
    )

    def transition(outcome: StepOutcome, target) -> Transition:
        if isinstance(target, InstanceStatus):
            return Transition(from_outcome=outcome, terminal_status=target)
        return Transition(from_outcome=outcome, to_step_name=target)

    steps = []
    for name in names:
        transitions = [
            transition(StepOutcome.APPROVED, draw(targets)),
            transition(StepOutcome.REJECTED, draw(targets)),
        ]
        if draw(st.booleans()):
            transitions.append(transition(StepOutcome.SKIPPED, draw(targets)))
        steps.append(
            WorkflowStep(
                step_name=name,
                order=0,
                all_conditions_must_match=draw(st.booleans()),
                conditions=tuple(draw(st.lists(conditions, max_size=2))),
                actions=(role(MemberRole.MANAGER),),
                transitions=tuple(transitions),
            )
        )
    return WorkflowTemplateCreate(
        organization_id=ORG, name="generated", initial_step_name="s0", steps=tuple(steps)
    )


submissions = st.fixed_dictionaries(
    {"amount": amounts},
    optional={
        "category": st.sampled_from(["travel", "meals", "other"]),
        "has_receipt": st.booleans(),
        "project": st.one_of(st.booleans(), amounts, st.text(max_size=5)),
    },
)


conditioned_steps = st.builds(
    lambda cs, all_match: WorkflowStep(
        step_name="s", order=0, conditions=tuple(cs), all_conditions_must_match=all_match
    ),
    st.lists(conditions, max_size=3),
    st.booleans(),
)

attribute_maps = st.dictionaries(
    st.sampled_from(["amount", "category", "location_id", "has_receipt", "project"]),
    attribute_values,
)


@given(step=conditioned_steps, attributes=attribute_maps)
def test_condition_evaluation_never_raises(step, attributes) -> None:
    assert matches(step, attributes) in (True, False)


@settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
@given(data=step_graphs(), attributes=submissions)
def test_valid_templates_always_reach_a_step_or_terminal(data, attributes) -> None:
    """On a validated template the skip walk terminates from every step."""
    if collect_template_errors(data):
        return
    template = as_template(data)
    for start in template.steps:
        result = walk_to_applicable_step(template, start, attributes)
        assert isinstance(result.target, StepTarget | TerminalTarget)
        assert len(result.skipped) <= len(template.steps)
        if isinstance(result.target, StepTarget):
            assert matches(result.target.step, attributes)


@settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
@given(data=step_graphs(), attributes=submissions, choices=st.lists(st.booleans(), min_size=30, max_size=30))
def test_valid_templates_never_dangle(data, attributes, choices) -> None:
    """Driving a validated template with arbitrary outcomes never hits a missing step or transition."""
    if collect_template_errors(data):
        return
    template = as_template(data)
    walk = walk_to_applicable_step(template, template.get_step("s0"), attributes)
    target = walk.target
    for approve in choices:
        if isinstance(target, TerminalTarget):
            assert target.status in (InstanceStatus.APPROVED, InstanceStatus.REJECTED)
            return
        outcome = StepOutcome.APPROVED if approve else StepOutcome.REJECTED
        moved = next_target(template, target.step, outcome)
        if isinstance(moved, TerminalTarget):
            target = moved
        else:
            target = walk_to_applicable_step(template, moved.step, attributes).target
