"""Schema-tagged value columns: value_kind plus one typed column per kind.

Numbers are stored as NUMERIC and read back as Decimal, so attribute and
condition values survive a round trip without float drift.
"""

from decimal import Decimal
from typing import NamedTuple

from orgflow.domain.value_objects.workflow import AttributeValue


class EncodedValue(NamedTuple):
    value_kind: str
    value_string: str | None
    value_number: Decimal | None
    value_boolean: bool | None


def encode_value(value: AttributeValue) -> EncodedValue:
    """Return the column values for value."""
    if value is None:
        return EncodedValue("null", None, None, None)
    if isinstance(value, bool):
        return EncodedValue("boolean", None, None, value)
    if isinstance(value, str):
        return EncodedValue("string", value, None, None)
    if isinstance(value, Decimal | int | float):
        return EncodedValue("number", None, Decimal(str(value)), None)
    raise TypeError(f"Unsupported attribute value type: {type(value).__name__}")


def decode_value(
    value_kind: str | None,
    value_string: str | None,
    value_number: Decimal | None,
    value_boolean: bool | None,
) -> AttributeValue:
    """Return the domain value stored in the tagged columns."""
    match value_kind:
        case "boolean":
            return value_boolean
        case "string":
            return value_string
        case "number":
            return value_number
        case _:
            return None
