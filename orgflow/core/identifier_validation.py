"""Identifier format validation for organization/department headers.

Shared by the request-context middleware (log context) and the
organization dependencies so malformed ids never reach queries or logs.
"""

import re

# CUID/UUID-style: alphanumeric, hyphen, underscore.
IDENTIFIER_MAX_LENGTH = 64
_IDENTIFIER_RE = re.compile(
    r"^[a-zA-Z0-9_-]{1," + str(IDENTIFIER_MAX_LENGTH) + r"}$"
)


def is_valid_identifier_format(value: str | None) -> bool:
    """Return True if value is a safe organization/department id."""
    if not value or len(value) > IDENTIFIER_MAX_LENGTH:
        return False
    return bool(_IDENTIFIER_RE.fullmatch(value))
