"""Request-scoped context for logging.

Middleware sets the request id and the organization header value so log
records can carry them. Business operations never read organization scope
from here; it is passed to them explicitly.
"""

from contextvars import ContextVar

current_request_id: ContextVar[str | None] = ContextVar(
    "current_request_id", default=None
)
current_organization_id: ContextVar[str | None] = ContextVar(
    "current_organization_id", default=None
)


def set_request_context(request_id: str | None, organization_id: str | None) -> None:
    """Set request id and organization id for this context (e.g. request)."""
    current_request_id.set(request_id)
    current_organization_id.set(organization_id)


def clear_request_context() -> None:
    current_request_id.set(None)
    current_organization_id.set(None)


def get_request_id() -> str | None:
    """Return the current request id if set."""
    return current_request_id.get()


def get_organization_id() -> str | None:
    """Return the current organization id if set."""
    return current_organization_id.get()
