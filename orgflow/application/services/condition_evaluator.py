"""Pure evaluation of step conditions against a submission's attributes.

A missing or ill-typed attribute makes its condition false; evaluation never
raises and has no side effects.
"""

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import assert_never

from orgflow.domain.entities.workflow_template import WorkflowStep
from orgflow.domain.value_objects.workflow import (
    AmountRangeCondition,
    AttributeValue,
    Condition,
    ExpenseCategoryCondition,
    FieldEqualsCondition,
    LocationCondition,
    ReceiptRequiredCondition,
)


def as_decimal(value: object) -> Decimal | None:
    """Return value as a finite Decimal, or None for non-numbers (bools excluded)."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int | float):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return None
        return result if result.is_finite() else None
    return None


def _field_equals(expected: Decimal | str | bool, actual: object) -> bool:
    if isinstance(expected, bool):
        return isinstance(actual, bool) and actual is expected
    if isinstance(expected, str):
        return isinstance(actual, str) and actual == expected
    actual_number = as_decimal(actual)
    return actual_number is not None and actual_number == expected


def condition_matches(
    condition: Condition, attributes: Mapping[str, AttributeValue]
) -> bool:
    """Return whether a single condition holds for attributes."""
    match condition:
        case AmountRangeCondition(min_amount=low, max_amount=high):
            amount = as_decimal(attributes.get("amount"))
            if amount is None:
                return False
            if low is not None and amount < low:
                return False
            if high is not None and amount > high:
                return False
            return True
        case ExpenseCategoryCondition(category=category):
            value = attributes.get("category")
            return isinstance(value, str) and value == category
        case LocationCondition(location_id=location_id):
            value = attributes.get("location_id")
            return isinstance(value, str) and value == location_id
        case ReceiptRequiredCondition():
            return attributes.get("has_receipt") is True
        case FieldEqualsCondition(field=field_name, value=expected):
            if field_name not in attributes:
                return False
            return _field_equals(expected, attributes[field_name])
        case _:
            assert_never(condition)


def matches(step: WorkflowStep, attributes: Mapping[str, AttributeValue]) -> bool:
    """Return whether step applies to attributes.

    No conditions: always applies. Otherwise AND over conditions when
    all_conditions_must_match, else OR.
    """
    if not step.conditions:
        return True
    results = (condition_matches(c, attributes) for c in step.conditions)
    if step.all_conditions_must_match:
        return all(results)
    return any(results)
