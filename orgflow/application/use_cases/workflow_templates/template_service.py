"""Template store use cases: create, read, revise (new version), activate/deactivate.

Definitions are validated before anything is written and are immutable once
stored. A revision is a new version in the same lineage; instances already
running keep the version they started on.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from orgflow.application.services.template_validator import validate_template_definition
from orgflow.domain.exceptions import ResourceNotFoundException, WorkflowConflictException
from orgflow.shared.telemetry.logging import get_logger
from orgflow.shared.telemetry.tracing import add_span_attributes, traced

if TYPE_CHECKING:
    from orgflow.application.dtos.workflow_template import WorkflowTemplateCreate
    from orgflow.application.interfaces.repositories import IWorkflowTemplateRepository
    from orgflow.domain.entities.workflow_template import WorkflowTemplate

logger = get_logger(__name__)


class WorkflowTemplateService:
    """Validated, versioned access to an organization's workflow templates."""

    def __init__(self, template_repo: IWorkflowTemplateRepository) -> None:
        self._template_repo = template_repo

    @traced("workflow_template.create")
    async def create_template(self, data: WorkflowTemplateCreate) -> WorkflowTemplate:
        """Validate and store version 1 of a new template lineage.

        Raises:
            TemplateValidationException: With every structural error found.
        """
        validate_template_definition(data)
        template = await self._template_repo.create_version(data)
        add_span_attributes(template_id=template.id, organization_id=template.organization_id)
        logger.info(
            "Created workflow template %s (%s) for organization %s",
            template.id,
            template.name,
            template.organization_id,
        )
        return template

    async def get_template(
        self, template_id: str, organization_id: str
    ) -> WorkflowTemplate:
        """Return the template version or raise ResourceNotFoundException."""
        template = await self._template_repo.get_by_id(template_id, organization_id)
        if template is None:
            raise ResourceNotFoundException("workflow_template", template_id)
        return template

    async def list_templates(
        self,
        organization_id: str,
        department_id: str | None = None,
        include_inactive: bool = False,
    ) -> list[WorkflowTemplate]:
        return await self._template_repo.list_by_organization(
            organization_id,
            department_id=department_id,
            include_inactive=include_inactive,
        )

    @traced("workflow_template.revise")
    async def revise_template(
        self,
        template_id: str,
        organization_id: str,
        data: WorkflowTemplateCreate,
    ) -> WorkflowTemplate:
        """Store data as the next version of template_id's lineage.

        Only the latest version may be revised. The superseded version is
        deactivated; instances bound to it continue unaffected.

        Raises:
            ResourceNotFoundException: Template not in this organization.
            WorkflowConflictException: template_id is not the latest version, or a
                concurrent revision stored the next version first.
            TemplateValidationException: Definition invalid.
        """
        current = await self.get_template(template_id, organization_id)
        latest = await self._template_repo.get_latest_version(current.lineage_id)
        if latest is None or latest.id != current.id:
            raise WorkflowConflictException(
                f"Template {template_id} has been superseded; revise the latest version",
                template_id=template_id,
                latest_template_id=latest.id if latest else None,
            )
        data = replace(data, organization_id=organization_id)
        validate_template_definition(data)
        revised = await self._template_repo.create_version(
            data,
            lineage_id=current.lineage_id,
            version=current.version + 1,
        )
        if current.is_active:
            await self._template_repo.set_active(current.id, organization_id, False)
        logger.info(
            "Revised workflow template lineage %s to version %d (%s)",
            current.lineage_id,
            revised.version,
            revised.id,
        )
        return revised

    @traced("workflow_template.set_active")
    async def set_template_active(
        self, template_id: str, organization_id: str, is_active: bool
    ) -> WorkflowTemplate:
        """Toggle whether new instances may start on this version."""
        template = await self._template_repo.set_active(
            template_id, organization_id, is_active
        )
        if template is None:
            raise ResourceNotFoundException("workflow_template", template_id)
        logger.info(
            "Workflow template %s %s",
            template_id,
            "activated" if is_active else "deactivated",
        )
        return template

    async def resolve_automatic_template(
        self, organization_id: str, department_id: str | None
    ) -> WorkflowTemplate | None:
        """Return the active AUTOMATIC template for the scope (department first, then organization-wide)."""
        return await self._template_repo.find_active_automatic(
            organization_id, department_id
        )
