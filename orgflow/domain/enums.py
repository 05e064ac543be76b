"""Domain enumerations for the approval engine.

Enums represent fixed sets of domain values. Values are the upper-case
names used on the wire and in the database.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class TriggerType(_ValuesMixin, str, Enum):
    """How instances of a template are started."""

    MANUAL = "MANUAL"
    AUTOMATIC = "AUTOMATIC"


class ConditionType(_ValuesMixin, str, Enum):
    """Discriminator for step condition variants."""

    AMOUNT_RANGE = "AMOUNT_RANGE"
    EXPENSE_CATEGORY = "EXPENSE_CATEGORY"
    LOCATION = "LOCATION"
    RECEIPT_REQUIRED = "RECEIPT_REQUIRED"
    FIELD_EQUALS = "FIELD_EQUALS"


class ActionType(_ValuesMixin, str, Enum):
    """Discriminator for step approver-action variants."""

    ROLE = "ROLE"
    SPECIFIC_MEMBER = "SPECIFIC_MEMBER"


class ApprovalMode(_ValuesMixin, str, Enum):
    """ALL: every resolved actor must approve. ANY: first decision wins."""

    ALL = "ALL"
    ANY = "ANY"


class StepOutcome(_ValuesMixin, str, Enum):
    """Outcome of a step; keys the step's transitions."""

    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SKIPPED = "SKIPPED"


class InstanceStatus(_ValuesMixin, str, Enum):
    """Workflow instance lifecycle status."""

    IN_PROGRESS = "IN_PROGRESS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not InstanceStatus.IN_PROGRESS


# Statuses a transition may end an instance with (CANCELLED is external only).
TRANSITION_TERMINAL_STATUSES: frozenset[InstanceStatus] = frozenset(
    {InstanceStatus.APPROVED, InstanceStatus.REJECTED}
)


class DecisionType(_ValuesMixin, str, Enum):
    """Decision an approver records on an open step."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"


class MemberRole(_ValuesMixin, str, Enum):
    """Organization member roles an approver action can target."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    EMPLOYEE = "EMPLOYEE"
    ASSISTANT = "ASSISTANT"
    MEMBER = "MEMBER"
