"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from orgflow.application.dtos.workflow_instance import WorkflowInstanceQuery
    from orgflow.application.dtos.workflow_template import WorkflowTemplateCreate
    from orgflow.domain.entities.workflow_instance import WorkflowInstance
    from orgflow.domain.entities.workflow_template import WorkflowTemplate
    from orgflow.domain.enums import MemberRole


# Workflow template repository interface
class IWorkflowTemplateRepository(Protocol):
    """Protocol for versioned template storage. Stored definitions are never rewritten."""

    async def create_version(
        self,
        data: WorkflowTemplateCreate,
        *,
        lineage_id: str | None = None,
        version: int = 1,
    ) -> WorkflowTemplate:
        """Persist a validated definition as a new template row (new lineage when lineage_id is None)."""

    async def get_by_id(
        self, template_id: str, organization_id: str
    ) -> WorkflowTemplate | None:
        """Return the template version if it belongs to the organization."""

    async def get_latest_version(self, lineage_id: str) -> WorkflowTemplate | None:
        """Return the highest version in a lineage."""

    async def list_by_organization(
        self,
        organization_id: str,
        department_id: str | None = None,
        include_inactive: bool = False,
    ) -> list[WorkflowTemplate]:
        """Return templates for the organization (optionally one department's)."""

    async def find_active_automatic(
        self, organization_id: str, department_id: str | None
    ) -> WorkflowTemplate | None:
        """Return the newest active AUTOMATIC template: department-specific first, then organization-wide."""

    async def set_active(
        self, template_id: str, organization_id: str, is_active: bool
    ) -> WorkflowTemplate | None:
        """Toggle the is_active flag only; the definition stays untouched."""


# Workflow instance repository interface
class IWorkflowInstanceRepository(Protocol):
    """Protocol for instance aggregate storage with optimistic versioning."""

    async def add(self, instance: WorkflowInstance) -> WorkflowInstance:
        """Persist a new instance with its executions."""

    async def get_by_id(
        self, instance_id: str, organization_id: str
    ) -> WorkflowInstance | None:
        """Return the instance with full step-execution history."""

    async def get_for_update(
        self, instance_id: str, organization_id: str
    ) -> WorkflowInstance | None:
        """Return the instance with its row locked for the current transaction."""

    async def save(self, instance: WorkflowInstance) -> WorkflowInstance:
        """Persist changes if the stored version still equals instance.version, then bump it.

        Raises WorkflowConflictException when another transaction saved first.
        """

    async def list_by_organization(
        self, query: WorkflowInstanceQuery
    ) -> list[WorkflowInstance]:
        """Return instances matching the query, newest first."""


# Membership directory interface (external collaborator)
class IMembershipDirectory(Protocol):
    """Read-only organization membership lookups used for approver resolution."""

    async def list_members_with_role(
        self,
        organization_id: str,
        department_id: str | None,
        role: MemberRole,
    ) -> list[str]:
        """Return ids of active members holding role in scope.

        With a department, scope is that department plus organization-wide members.
        """

    async def is_active_member(self, organization_id: str, member_id: str) -> bool:
        """Return whether member_id is an active member of the organization."""
