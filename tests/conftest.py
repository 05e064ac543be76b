"""Pytest configuration and fixtures for orgflow.

Rate limiting and telemetry are switched off before orgflow is imported
(the limiter reads settings at import). Service tests run against the
in-memory fakes in tests.support; DB-backed tests use db_session and are
marked requires_db.
"""

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("TELEMETRY_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from orgflow.application.services import ActorResolver
from orgflow.application.use_cases.workflow_instances import WorkflowRuntime
from orgflow.application.use_cases.workflow_templates import WorkflowTemplateService
from orgflow.core.config import get_settings
from orgflow.domain.enums import MemberRole
from orgflow.main import app
from tests.support.builders import ORG
from tests.support.fakes import (
    InMemoryInstanceRepository,
    InMemoryMembershipDirectory,
    InMemoryTemplateRepository,
)


@pytest.fixture
def template_repo() -> InMemoryTemplateRepository:
    return InMemoryTemplateRepository()


@pytest.fixture
def instance_repo() -> InMemoryInstanceRepository:
    return InMemoryInstanceRepository()


@pytest.fixture
def directory() -> InMemoryMembershipDirectory:
    """Membership for ORG: two managers, one admin, one owner, one employee."""
    d = InMemoryMembershipDirectory()
    d.add_member(ORG, "mgr-1", MemberRole.MANAGER)
    d.add_member(ORG, "mgr-2", MemberRole.MANAGER)
    d.add_member(ORG, "fin-1", MemberRole.ADMIN)
    d.add_member(ORG, "owner-1", MemberRole.OWNER)
    d.add_member(ORG, "emp-1", MemberRole.EMPLOYEE)
    return d


@pytest.fixture
def template_service(template_repo) -> WorkflowTemplateService:
    return WorkflowTemplateService(template_repo)


@pytest.fixture
def runtime(template_service, instance_repo, directory) -> WorkflowRuntime:
    return WorkflowRuntime(
        templates=template_service,
        instance_repo=instance_repo,
        actor_resolver=ActorResolver(directory),
    )


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def db_session() -> AsyncSession:
    """Database session for repository/integration tests. Rolls back after test.

    Skips when DATABASE_URL is not set. Schema must be migrated first:
    alembic upgrade head. Run without a database via: pytest -m 'not requires_db'.
    """
    if not get_settings().sql_configured:
        pytest.skip("Postgres not configured: set DATABASE_URL, then run: alembic upgrade head")
    from orgflow.infrastructure.persistence import database

    engine = database.get_engine()
    async with engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        try:
            yield session
        finally:
            await session.close()
            await trans.rollback()
