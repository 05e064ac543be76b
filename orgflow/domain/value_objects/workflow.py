"""Workflow value objects: condition, action and transition variants.

Conditions and actions are closed tagged variants. Each variant is a frozen
dataclass carrying a class-level ``type`` discriminator; the ``Condition``
and ``Action`` aliases are the complete unions. New kinds are added here as
new variants, never as untyped extension fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

from orgflow.domain.enums import (
    ActionType,
    ApprovalMode,
    ConditionType,
    InstanceStatus,
    MemberRole,
    StepOutcome,
)

# Attribute values the engine accepts from a submission (flat map).
AttributeValue = Decimal | str | bool | None


@dataclass(frozen=True)
class AmountRangeCondition:
    """Matches when min_amount <= attributes['amount'] <= max_amount (bounds optional)."""

    type: ClassVar[ConditionType] = ConditionType.AMOUNT_RANGE

    min_amount: Decimal | None = None
    max_amount: Decimal | None = None


@dataclass(frozen=True)
class ExpenseCategoryCondition:
    """Matches when attributes['category'] equals category."""

    type: ClassVar[ConditionType] = ConditionType.EXPENSE_CATEGORY

    category: str


@dataclass(frozen=True)
class LocationCondition:
    """Matches when attributes['location_id'] equals location_id."""

    type: ClassVar[ConditionType] = ConditionType.LOCATION

    location_id: str


@dataclass(frozen=True)
class ReceiptRequiredCondition:
    """Matches when attributes['has_receipt'] is True."""

    type: ClassVar[ConditionType] = ConditionType.RECEIPT_REQUIRED


@dataclass(frozen=True)
class FieldEqualsCondition:
    """Typed custom-field predicate: attributes[field] equals value (same kind)."""

    type: ClassVar[ConditionType] = ConditionType.FIELD_EQUALS

    field: str
    value: Decimal | str | bool


Condition = (
    AmountRangeCondition
    | ExpenseCategoryCondition
    | LocationCondition
    | ReceiptRequiredCondition
    | FieldEqualsCondition
)


@dataclass(frozen=True)
class RoleAction:
    """Every active member holding approver_role in scope is a required actor."""

    type: ClassVar[ActionType] = ActionType.ROLE

    approver_role: MemberRole
    approval_mode: ApprovalMode = ApprovalMode.ANY


@dataclass(frozen=True)
class SpecificMemberAction:
    """A single named member must decide."""

    type: ClassVar[ActionType] = ActionType.SPECIFIC_MEMBER

    member_id: str

    @property
    def approval_mode(self) -> ApprovalMode:
        return ApprovalMode.ANY


Action = RoleAction | SpecificMemberAction


@dataclass(frozen=True)
class Transition:
    """Maps a step outcome to the next step name or a terminal instance status.

    Exactly one of to_step_name and terminal_status is set on a valid template.
    """

    from_outcome: StepOutcome
    to_step_name: str | None = None
    terminal_status: InstanceStatus | None = None

    @property
    def is_terminal(self) -> bool:
        return self.terminal_status is not None
