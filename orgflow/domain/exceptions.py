"""Domain exceptions for the orgflow approval engine.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class OrgflowException(Exception):
    """Base exception for all orgflow application errors.

    Presentation layer maps these to HTTP responses using message,
    error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error body used by the HTTP layer."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(OrgflowException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(OrgflowException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow_template').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class TemplateValidationException(OrgflowException):
    """Raised when a template definition is structurally invalid.

    Carries every problem found, each as ``{"field": ..., "message": ...}``,
    so callers can correct the whole definition in one round trip.
    """

    def __init__(self, errors: list[dict[str, str]]) -> None:
        """Initialize with the collected field-level errors.

        Args:
            errors: Non-empty list of dicts with 'field' and 'message'.
        """
        summary = errors[0]["message"] if errors else "Invalid workflow template"
        if len(errors) > 1:
            summary = f"{summary} (and {len(errors) - 1} more)"
        super().__init__(
            summary,
            "TEMPLATE_VALIDATION_ERROR",
            {"errors": errors},
        )

    @property
    def errors(self) -> list[dict[str, str]]:
        return self.details["errors"]


class ResolutionException(OrgflowException):
    """Raised when a step action resolves to no eligible approver."""

    def __init__(
        self,
        step_name: str,
        reason: str = "no eligible approver",
        **details_extra: Any,
    ) -> None:
        """Initialize with the step whose approvers could not be resolved.

        Args:
            step_name: Step being entered.
            reason: Human-readable reason.
            **details_extra: Optional keys merged into details (e.g. role, member_id).
        """
        super().__init__(
            f"Step '{step_name}': {reason}",
            "NO_ELIGIBLE_APPROVER",
            {"step_name": step_name, "reason": reason, **details_extra},
        )


class ApproverAuthorizationException(OrgflowException):
    """Raised when a decision comes from an actor outside the step's snapshotted approver set."""

    def __init__(self, instance_id: str, step_name: str, actor_id: str) -> None:
        super().__init__(
            f"Actor {actor_id} is not an approver for step '{step_name}'",
            "APPROVER_NOT_AUTHORIZED",
            {"instance_id": instance_id, "step_name": step_name, "actor_id": actor_id},
        )


class WorkflowConflictException(OrgflowException):
    """Raised when a request conflicts with the current workflow state.

    Covers decisions on resolved steps or terminal instances, a changed
    decision from an actor who already decided, revising a superseded
    template, and losing a concurrent update race (retry is safe).
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "WORKFLOW_CONFLICT", details)


class WorkflowConsistencyException(OrgflowException):
    """Raised when a stored workflow violates an invariant that validation guarantees.

    Indicates a defect, not a user error. Logged and surfaced as an
    internal error; never retried.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "WORKFLOW_CONSISTENCY_ERROR", details)


class SqlNotConfiguredException(OrgflowException):
    """Raised when an operation requires Postgres but the database is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
