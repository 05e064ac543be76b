"""Typed scalar values shared by template and instance schemas."""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BeforeValidator, StrictBool, StrictStr


def _json_number_to_decimal(value: Any) -> Any:
    """Turn JSON numbers into Decimal; strings and booleans keep their kind."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return value
    return Decimal(str(value))


# Only JSON numbers become Decimal: "1001" stays a string so string conditions
# (LOCATION, EXPENSE_CATEGORY) keep matching it.
ScalarValue = Annotated[
    StrictBool | StrictStr | Decimal,
    BeforeValidator(_json_number_to_decimal),
]

AttributeValueSchema = ScalarValue | None
