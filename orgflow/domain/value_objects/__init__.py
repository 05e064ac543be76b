"""Domain value objects (immutable, no identity)."""

from orgflow.domain.value_objects.workflow import (
    Action,
    AmountRangeCondition,
    AttributeValue,
    Condition,
    ExpenseCategoryCondition,
    FieldEqualsCondition,
    LocationCondition,
    ReceiptRequiredCondition,
    RoleAction,
    SpecificMemberAction,
    Transition,
)

__all__ = [
    "Action",
    "AmountRangeCondition",
    "AttributeValue",
    "Condition",
    "ExpenseCategoryCondition",
    "FieldEqualsCondition",
    "LocationCondition",
    "ReceiptRequiredCondition",
    "RoleAction",
    "SpecificMemberAction",
    "Transition",
]
