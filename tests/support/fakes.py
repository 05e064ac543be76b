"""In-memory repositories and membership directory for service tests.

They honour the repository protocols: organization scoping, copies on read
(callers never mutate stored state), one row per template lineage version,
the optimistic version check on save, and a per-instance lock taken by
get_for_update and held until save or the end of the calling task, the way a
FOR UPDATE row lock is held until the transaction ends. Each async method
yields once so asyncio.gather interleaves callers the way concurrent requests
would.
"""

from __future__ import annotations

import asyncio
from copy import deepcopy
from dataclasses import dataclass, replace

from orgflow.application.dtos import WorkflowInstanceQuery, WorkflowTemplateCreate
from orgflow.domain.entities import WorkflowInstance, WorkflowTemplate
from orgflow.domain.enums import MemberRole, TriggerType
from orgflow.domain.exceptions import WorkflowConflictException
from orgflow.shared.utils.datetime import utc_now
from orgflow.shared.utils.generators import generate_cuid


class InMemoryTemplateRepository:
    def __init__(self) -> None:
        self.templates: dict[str, WorkflowTemplate] = {}

    async def create_version(
        self,
        data: WorkflowTemplateCreate,
        *,
        lineage_id: str | None = None,
        version: int = 1,
    ) -> WorkflowTemplate:
        await asyncio.sleep(0)
        template_id = generate_cuid()
        if lineage_id is not None and any(
            t.lineage_id == lineage_id and t.version == version
            for t in self.templates.values()
        ):
            raise WorkflowConflictException(
                f"Version {version} of template lineage {lineage_id} already exists",
                lineage_id=lineage_id,
                version=version,
            )
        template = WorkflowTemplate(
            id=template_id,
            organization_id=data.organization_id,
            department_id=data.department_id,
            lineage_id=lineage_id or template_id,
            version=version,
            name=data.name,
            description=data.description,
            trigger_type=data.trigger_type,
            is_active=data.is_active,
            initial_step_name=data.initial_step_name,
            steps=tuple(data.steps),
            created_at=utc_now(),
        )
        self.templates[template_id] = template
        return template

    async def get_by_id(
        self, template_id: str, organization_id: str
    ) -> WorkflowTemplate | None:
        await asyncio.sleep(0)
        template = self.templates.get(template_id)
        if template is None or template.organization_id != organization_id:
            return None
        return template

    async def get_latest_version(self, lineage_id: str) -> WorkflowTemplate | None:
        versions = [t for t in self.templates.values() if t.lineage_id == lineage_id]
        return max(versions, key=lambda t: t.version, default=None)

    async def list_by_organization(
        self,
        organization_id: str,
        department_id: str | None = None,
        include_inactive: bool = False,
    ) -> list[WorkflowTemplate]:
        found = [
            t
            for t in self.templates.values()
            if t.organization_id == organization_id
            and (department_id is None or t.department_id == department_id)
            and (include_inactive or t.is_active)
        ]
        return sorted(found, key=lambda t: (t.name, -t.version))

    async def find_active_automatic(
        self, organization_id: str, department_id: str | None
    ) -> WorkflowTemplate | None:
        candidates = [
            t
            for t in reversed(list(self.templates.values()))
            if t.organization_id == organization_id
            and t.is_active
            and t.trigger_type == TriggerType.AUTOMATIC
        ]
        scopes = [None] if department_id is None else [department_id, None]
        for scope in scopes:
            for template in candidates:
                if template.department_id == scope:
                    return template
        return None

    async def set_active(
        self, template_id: str, organization_id: str, is_active: bool
    ) -> WorkflowTemplate | None:
        template = await self.get_by_id(template_id, organization_id)
        if template is None:
            return None
        updated = replace(template, is_active=is_active)
        self.templates[template_id] = updated
        return updated


class _RowLocks:
    """Per-instance locks owned by a task; re-acquiring in the owning task is a no-op."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._owners: dict[str, asyncio.Task] = {}

    async def acquire(self, key: str) -> None:
        task = asyncio.current_task()
        if self._owners.get(key) is task:
            return
        await self._locks.setdefault(key, asyncio.Lock()).acquire()
        self._owners[key] = task
        task.add_done_callback(lambda done: self.release(key, done))

    def release(self, key: str, task: asyncio.Task | None = None) -> None:
        owner = task or asyncio.current_task()
        if self._owners.get(key) is owner:
            del self._owners[key]
            self._locks[key].release()


class InMemoryInstanceRepository:
    def __init__(self) -> None:
        self.instances: dict[str, WorkflowInstance] = {}
        self.save_count = 0
        self._row_locks = _RowLocks()

    async def add(self, instance: WorkflowInstance) -> WorkflowInstance:
        await asyncio.sleep(0)
        self.instances[instance.id] = deepcopy(instance)
        return instance

    async def get_by_id(
        self, instance_id: str, organization_id: str
    ) -> WorkflowInstance | None:
        await asyncio.sleep(0)
        instance = self.instances.get(instance_id)
        if instance is None or instance.organization_id != organization_id:
            return None
        return deepcopy(instance)

    async def get_for_update(
        self, instance_id: str, organization_id: str
    ) -> WorkflowInstance | None:
        await self._row_locks.acquire(instance_id)
        return await self.get_by_id(instance_id, organization_id)

    async def save(self, instance: WorkflowInstance) -> WorkflowInstance:
        await asyncio.sleep(0)
        stored = self.instances.get(instance.id)
        if stored is None or stored.version != instance.version:
            raise WorkflowConflictException(
                f"Workflow instance {instance.id} was modified concurrently; retry",
                instance_id=instance.id,
            )
        instance.version += 1
        self.instances[instance.id] = deepcopy(instance)
        self.save_count += 1
        self._row_locks.release(instance.id)
        return instance

    async def list_by_organization(
        self, query: WorkflowInstanceQuery
    ) -> list[WorkflowInstance]:
        found = [
            deepcopy(i)
            for i in self.instances.values()
            if i.organization_id == query.organization_id
            and (query.status is None or i.status == query.status)
            and (query.subject_type is None or i.subject_type == query.subject_type)
            and (query.subject_id is None or i.subject_id == query.subject_id)
        ]
        found.sort(key=lambda i: i.created_at, reverse=True)
        return found[query.skip : query.skip + query.limit]


@dataclass
class _Member:
    organization_id: str
    member_id: str
    role: MemberRole
    department_id: str | None
    is_active: bool


class InMemoryMembershipDirectory:
    def __init__(self) -> None:
        self.members: list[_Member] = []

    def add_member(
        self,
        organization_id: str,
        member_id: str,
        role: MemberRole,
        department_id: str | None = None,
        is_active: bool = True,
    ) -> None:
        self.members.append(
            _Member(organization_id, member_id, role, department_id, is_active)
        )

    def deactivate(self, organization_id: str, member_id: str) -> None:
        for member in self.members:
            if member.organization_id == organization_id and member.member_id == member_id:
                member.is_active = False

    async def list_members_with_role(
        self,
        organization_id: str,
        department_id: str | None,
        role: MemberRole,
    ) -> list[str]:
        await asyncio.sleep(0)
        return sorted(
            {
                m.member_id
                for m in self.members
                if m.organization_id == organization_id
                and m.role == role
                and m.is_active
                and (
                    department_id is None
                    or m.department_id is None
                    or m.department_id == department_id
                )
            }
        )

    async def is_active_member(self, organization_id: str, member_id: str) -> bool:
        await asyncio.sleep(0)
        return any(
            m.organization_id == organization_id and m.member_id == member_id and m.is_active
            for m in self.members
        )
