"""Workflow template API schemas.

Conditions and actions are discriminated on ``type``; each schema converts
to and from its domain variant. Structural rules (unique step names,
reachable steps, declared transitions) are checked by the template
validator so every problem is reported at once, not by pydantic.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field

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
    ExpenseCategoryCondition,
    FieldEqualsCondition,
    LocationCondition,
    ReceiptRequiredCondition,
    RoleAction,
    SpecificMemberAction,
    Transition,
)
from orgflow.schemas.values import ScalarValue


class AmountRangeConditionSchema(BaseModel):
    type: Literal["AMOUNT_RANGE"] = "AMOUNT_RANGE"
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None

    def to_domain(self) -> AmountRangeCondition:
        return AmountRangeCondition(min_amount=self.min_amount, max_amount=self.max_amount)


class ExpenseCategoryConditionSchema(BaseModel):
    type: Literal["EXPENSE_CATEGORY"] = "EXPENSE_CATEGORY"
    category: str

    def to_domain(self) -> ExpenseCategoryCondition:
        return ExpenseCategoryCondition(category=self.category)


class LocationConditionSchema(BaseModel):
    type: Literal["LOCATION"] = "LOCATION"
    location_id: str

    def to_domain(self) -> LocationCondition:
        return LocationCondition(location_id=self.location_id)


class ReceiptRequiredConditionSchema(BaseModel):
    type: Literal["RECEIPT_REQUIRED"] = "RECEIPT_REQUIRED"

    def to_domain(self) -> ReceiptRequiredCondition:
        return ReceiptRequiredCondition()


class FieldEqualsConditionSchema(BaseModel):
    """Custom attribute predicate; value kind must match the attribute's kind."""

    type: Literal["FIELD_EQUALS"] = "FIELD_EQUALS"
    field: str
    value: ScalarValue

    def to_domain(self) -> FieldEqualsCondition:
        return FieldEqualsCondition(field=self.field, value=self.value)


ConditionSchema = Annotated[
    AmountRangeConditionSchema
    | ExpenseCategoryConditionSchema
    | LocationConditionSchema
    | ReceiptRequiredConditionSchema
    | FieldEqualsConditionSchema,
    Field(discriminator="type"),
]


class RoleActionSchema(BaseModel):
    type: Literal["ROLE"] = "ROLE"
    approver_role: MemberRole
    approval_mode: ApprovalMode = ApprovalMode.ANY

    def to_domain(self) -> RoleAction:
        return RoleAction(approver_role=self.approver_role, approval_mode=self.approval_mode)


class SpecificMemberActionSchema(BaseModel):
    type: Literal["SPECIFIC_MEMBER"] = "SPECIFIC_MEMBER"
    member_id: str

    def to_domain(self) -> SpecificMemberAction:
        return SpecificMemberAction(member_id=self.member_id)


ActionSchema = Annotated[
    RoleActionSchema | SpecificMemberActionSchema,
    Field(discriminator="type"),
]


def condition_to_schema(condition: Condition) -> ConditionSchema:
    match condition:
        case AmountRangeCondition():
            return AmountRangeConditionSchema(
                min_amount=condition.min_amount, max_amount=condition.max_amount
            )
        case ExpenseCategoryCondition():
            return ExpenseCategoryConditionSchema(category=condition.category)
        case LocationCondition():
            return LocationConditionSchema(location_id=condition.location_id)
        case ReceiptRequiredCondition():
            return ReceiptRequiredConditionSchema()
        case FieldEqualsCondition():
            return FieldEqualsConditionSchema(field=condition.field, value=condition.value)
    raise TypeError(f"Unsupported condition: {condition!r}")


def action_to_schema(action: Action) -> ActionSchema:
    match action:
        case RoleAction():
            return RoleActionSchema(
                approver_role=action.approver_role, approval_mode=action.approval_mode
            )
        case SpecificMemberAction():
            return SpecificMemberActionSchema(member_id=action.member_id)
    raise TypeError(f"Unsupported action: {action!r}")


class TransitionSchema(BaseModel):
    """Exactly one of to_step_name and terminal_status must be set."""

    from_outcome: StepOutcome
    to_step_name: str | None = None
    terminal_status: InstanceStatus | None = None


class WorkflowStepSchema(BaseModel):
    """One template step: when it applies, who decides, where each outcome leads."""

    step_name: str = Field(..., max_length=128)
    order: int = 0
    description: str | None = None
    all_conditions_must_match: bool = True
    conditions: list[ConditionSchema] = Field(default_factory=list)
    actions: list[ActionSchema] = Field(default_factory=list)
    transitions: list[TransitionSchema] = Field(default_factory=list)

    def to_domain(self) -> WorkflowStep:
        return WorkflowStep(
            step_name=self.step_name,
            order=self.order,
            description=self.description,
            all_conditions_must_match=self.all_conditions_must_match,
            conditions=tuple(c.to_domain() for c in self.conditions),
            actions=tuple(a.to_domain() for a in self.actions),
            transitions=tuple(
                Transition(
                    from_outcome=t.from_outcome,
                    to_step_name=t.to_step_name,
                    terminal_status=t.terminal_status,
                )
                for t in self.transitions
            ),
        )

    @classmethod
    def from_domain(cls, step: WorkflowStep) -> WorkflowStepSchema:
        return cls(
            step_name=step.step_name,
            order=step.order,
            description=step.description,
            all_conditions_must_match=step.all_conditions_must_match,
            conditions=[condition_to_schema(c) for c in step.conditions],
            actions=[action_to_schema(a) for a in step.actions],
            transitions=[
                TransitionSchema(
                    from_outcome=t.from_outcome,
                    to_step_name=t.to_step_name,
                    terminal_status=t.terminal_status,
                )
                for t in step.transitions
            ],
        )


class WorkflowTemplateCreateRequest(BaseModel):
    """Request body for creating a template or a new version of one."""

    name: str = Field(..., max_length=255)
    description: str | None = None
    department_id: str | None = Field(default=None, max_length=64)
    trigger_type: TriggerType = TriggerType.MANUAL
    is_active: bool = True
    initial_step_name: str = Field(..., max_length=128)
    steps: list[WorkflowStepSchema] = Field(default_factory=list)

    def to_command(self, organization_id: str) -> WorkflowTemplateCreate:
        return WorkflowTemplateCreate(
            organization_id=organization_id,
            name=self.name,
            description=self.description,
            department_id=self.department_id,
            trigger_type=self.trigger_type,
            is_active=self.is_active,
            initial_step_name=self.initial_step_name,
            steps=tuple(step.to_domain() for step in self.steps),
        )


class WorkflowTemplateResponse(BaseModel):
    """Workflow template version returned by the API."""

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
    steps: list[WorkflowStepSchema]
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, template: WorkflowTemplate) -> WorkflowTemplateResponse:
        return cls(
            id=template.id,
            organization_id=template.organization_id,
            department_id=template.department_id,
            lineage_id=template.lineage_id,
            version=template.version,
            name=template.name,
            description=template.description,
            trigger_type=template.trigger_type,
            is_active=template.is_active,
            initial_step_name=template.initial_step_name,
            steps=[WorkflowStepSchema.from_domain(step) for step in template.steps],
            created_at=template.created_at,
        )
