"""Organization scope dependencies: resolve organization/department ids from headers."""

from __future__ import annotations

from fastapi import HTTPException, Request

from orgflow.core.config import get_settings
from orgflow.core.identifier_validation import is_valid_identifier_format

_FORMAT_HINT = "use alphanumeric, hyphen, underscore; max 64 characters"


async def get_organization_id(request: Request) -> str:
    """Return the organization id from the organization header.

    Every route is organization-scoped; a missing or malformed header is a 400.
    """
    name = get_settings().organization_header_name
    value = request.headers.get(name)
    if not value:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required header: {name}",
        )
    if not is_valid_identifier_format(value):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid organization ID format ({_FORMAT_HINT})",
        )
    return value


async def get_department_id(request: Request) -> str | None:
    """Return the optional department id header, or None when absent."""
    name = get_settings().department_header_name
    value = request.headers.get(name)
    if not value:
        return None
    if not is_valid_identifier_format(value):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid department ID format ({_FORMAT_HINT})",
        )
    return value
