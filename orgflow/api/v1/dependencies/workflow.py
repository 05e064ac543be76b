"""Workflow template and runtime dependencies (composition root).

Read dependencies share a plain session; write dependencies share one
transactional session so an instance update and its decision rows commit
(or roll back) together.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from orgflow.application.services import ActorResolver
from orgflow.application.use_cases.workflow_instances import WorkflowRuntime
from orgflow.application.use_cases.workflow_templates import WorkflowTemplateService
from orgflow.infrastructure.persistence.database import get_db, get_db_transactional
from orgflow.infrastructure.persistence.repositories import (
    MembershipRepository,
    WorkflowInstanceRepository,
    WorkflowTemplateRepository,
)


def _build_runtime(db: AsyncSession) -> WorkflowRuntime:
    return WorkflowRuntime(
        templates=WorkflowTemplateService(WorkflowTemplateRepository(db)),
        instance_repo=WorkflowInstanceRepository(db),
        actor_resolver=ActorResolver(MembershipRepository(db)),
    )


async def get_template_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WorkflowTemplateService:
    """Template service for read operations (list, get by id)."""
    return WorkflowTemplateService(WorkflowTemplateRepository(db))


async def get_template_service_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> WorkflowTemplateService:
    """Template service for create/revise/activate (transactional)."""
    return WorkflowTemplateService(WorkflowTemplateRepository(db))


async def get_workflow_runtime(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> WorkflowRuntime:
    """Workflow runtime for read operations (get, list instances)."""
    return _build_runtime(db)


async def get_workflow_runtime_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> WorkflowRuntime:
    """Workflow runtime for start/decide/cancel (transactional)."""
    return _build_runtime(db)
