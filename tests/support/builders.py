"""Concise builders for template definitions used across tests."""

from __future__ import annotations

from decimal import Decimal

from orgflow.application.dtos import WorkflowTemplateCreate
from orgflow.domain.entities import WorkflowStep, WorkflowTemplate
from orgflow.domain.enums import (
    ApprovalMode,
    InstanceStatus,
    MemberRole,
    StepOutcome,
    TriggerType,
)
from orgflow.domain.value_objects.workflow import (
    Action,
    AmountRangeCondition,
    Condition,
    RoleAction,
    Transition,
)

ORG = "org-1"
OTHER_ORG = "org-2"

APPROVED = InstanceStatus.APPROVED
REJECTED = InstanceStatus.REJECTED


def _transition(outcome: StepOutcome, target: str | InstanceStatus) -> Transition:
    if isinstance(target, InstanceStatus):
        return Transition(from_outcome=outcome, terminal_status=target)
    return Transition(from_outcome=outcome, to_step_name=target)


def role(r: MemberRole, mode: ApprovalMode = ApprovalMode.ANY) -> RoleAction:
    return RoleAction(approver_role=r, approval_mode=mode)


def step(
    name: str,
    *,
    actions: tuple[Action, ...] = (),
    conditions: tuple[Condition, ...] = (),
    on_approve: str | InstanceStatus = APPROVED,
    on_reject: str | InstanceStatus = REJECTED,
    on_skip: str | InstanceStatus | None = None,
    all_match: bool = True,
    order: int = 0,
) -> WorkflowStep:
    """Build a step; actions default to one MANAGER (ANY) approver."""
    transitions = [
        _transition(StepOutcome.APPROVED, on_approve),
        _transition(StepOutcome.REJECTED, on_reject),
    ]
    if on_skip is not None:
        transitions.append(_transition(StepOutcome.SKIPPED, on_skip))
    return WorkflowStep(
        step_name=name,
        order=order,
        all_conditions_must_match=all_match,
        conditions=conditions,
        actions=actions or (role(MemberRole.MANAGER),),
        transitions=tuple(transitions),
    )


def definition(
    *steps: WorkflowStep,
    name: str = "Expense approval",
    initial: str | None = None,
    organization_id: str = ORG,
    department_id: str | None = None,
    trigger_type: TriggerType = TriggerType.MANUAL,
    is_active: bool = True,
) -> WorkflowTemplateCreate:
    return WorkflowTemplateCreate(
        organization_id=organization_id,
        name=name,
        initial_step_name=initial if initial is not None else steps[0].step_name,
        steps=tuple(steps),
        department_id=department_id,
        trigger_type=trigger_type,
        is_active=is_active,
    )


def as_template(data: WorkflowTemplateCreate, template_id: str = "tpl-1") -> WorkflowTemplate:
    """Materialize a definition as a stored version 1 (for pure engine tests)."""
    return WorkflowTemplate(
        id=template_id,
        organization_id=data.organization_id,
        department_id=data.department_id,
        lineage_id=template_id,
        version=1,
        name=data.name,
        description=data.description,
        trigger_type=data.trigger_type,
        is_active=data.is_active,
        initial_step_name=data.initial_step_name,
        steps=data.steps,
    )


def expense_definition(**kwargs) -> WorkflowTemplateCreate:
    """Manager review, then finance review only for amounts of 1000 or more."""
    return definition(
        step("manager_review", on_approve="finance_review", order=1),
        step(
            "finance_review",
            actions=(role(MemberRole.ADMIN),),
            conditions=(AmountRangeCondition(min_amount=Decimal("1000")),),
            order=2,
        ),
        **kwargs,
    )


def two_manager_steps(**kwargs) -> WorkflowTemplateCreate:
    """Two consecutive MANAGER (ANY) steps: the same approvers decide both."""
    return definition(
        step("first", on_approve="second", order=1),
        step("second", order=2),
        **kwargs,
    )
