"""Workflow instance repository. Row-locked reads and version-checked writes.

Step executions and decisions are append-only: save() inserts new ones and
only ever fills in outcome/resolved_at on existing executions.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orgflow.domain import entities
from orgflow.domain.enums import ApprovalMode, DecisionType, InstanceStatus, StepOutcome
from orgflow.domain.exceptions import WorkflowConflictException
from orgflow.infrastructure.persistence.database import Base
from orgflow.infrastructure.persistence.models.workflow_instance import (
    StepDecision,
    StepExecution,
    StepExecutionActor,
    StepExecutionActorGroup,
    WorkflowInstance,
    WorkflowInstanceAttribute,
)
from orgflow.infrastructure.persistence.repositories.base import BaseRepository
from orgflow.infrastructure.persistence.repositories.value_codec import (
    decode_value,
    encode_value,
)
from orgflow.shared.telemetry.logging import get_logger
from orgflow.shared.utils.datetime import ensure_utc
from orgflow.shared.utils.generators import generate_cuid

if TYPE_CHECKING:
    from orgflow.application.dtos.workflow_instance import WorkflowInstanceQuery

logger = get_logger(__name__)


def _decision_row(execution_id: str, record: entities.DecisionRecord) -> StepDecision:
    return StepDecision(
        id=record.id,
        step_execution_id=execution_id,
        actor_id=record.actor_id,
        decision=record.decision.value,
        note=record.note,
        decided_at=record.decided_at,
    )


def _execution_rows(
    instance_id: str, execution: entities.StepExecution
) -> tuple[list[Base], list[Base]]:
    """Return (parent rows, dependent rows) for a new execution."""
    parents: list[Base] = [
        StepExecution(
            id=execution.id,
            instance_id=instance_id,
            sequence=execution.sequence,
            step_name=execution.step_name,
            outcome=execution.outcome.value if execution.outcome else None,
            entered_at=execution.entered_at,
            resolved_at=execution.resolved_at,
        )
    ]
    groups: list[Base] = []
    actors: list[Base] = []
    for group in execution.actor_groups:
        group_id = generate_cuid()
        groups.append(
            StepExecutionActorGroup(
                id=group_id,
                step_execution_id=execution.id,
                action_index=group.action_index,
                approval_mode=group.approval_mode.value,
            )
        )
        actors.extend(
            StepExecutionActor(
                id=generate_cuid(),
                actor_group_id=group_id,
                actor_id=actor_id,
                position=position,
            )
            for position, actor_id in enumerate(group.actor_ids)
        )
    decisions = [_decision_row(execution.id, d) for d in execution.decisions]
    return parents + groups, actors + decisions


class WorkflowInstanceRepository(BaseRepository[WorkflowInstance]):
    """Workflow instance aggregate repository. Organization-scoped by query."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowInstance)

    async def add(self, instance: entities.WorkflowInstance) -> entities.WorkflowInstance:
        """Insert the instance with attributes, executions, actor snapshot and decisions."""
        await self.create(
            WorkflowInstance(
                id=instance.id,
                organization_id=instance.organization_id,
                department_id=instance.department_id,
                template_id=instance.template_id,
                template_version=instance.template_version,
                subject_type=instance.subject_type,
                subject_id=instance.subject_id,
                submitted_by=instance.submitted_by,
                status=instance.status.value,
                current_step_name=instance.current_step_name,
                created_at=instance.created_at,
                updated_at=instance.updated_at,
                completed_at=instance.completed_at,
                version=instance.version,
            )
        )
        attributes: list[Base] = []
        for name, value in instance.attributes.items():
            encoded = encode_value(value)
            attributes.append(
                WorkflowInstanceAttribute(
                    id=generate_cuid(),
                    instance_id=instance.id,
                    name=name,
                    value_kind=encoded.value_kind,
                    value_string=encoded.value_string,
                    value_number=encoded.value_number,
                    value_boolean=encoded.value_boolean,
                )
            )
        await self.add_rows(attributes)
        await self._insert_executions(instance.id, instance.step_executions)
        return instance

    async def get_by_id(
        self, instance_id: str, organization_id: str
    ) -> entities.WorkflowInstance | None:
        result = await self.db.execute(
            select(WorkflowInstance).where(
                WorkflowInstance.id == instance_id,
                WorkflowInstance.organization_id == organization_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        (instance,) = await self._hydrate([row])
        return instance

    async def get_for_update(
        self, instance_id: str, organization_id: str
    ) -> entities.WorkflowInstance | None:
        """Return the instance with its row locked (SELECT ... FOR UPDATE) until commit."""
        result = await self.db.execute(
            select(WorkflowInstance)
            .where(
                WorkflowInstance.id == instance_id,
                WorkflowInstance.organization_id == organization_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        (instance,) = await self._hydrate([row])
        return instance

    async def save(self, instance: entities.WorkflowInstance) -> entities.WorkflowInstance:
        """Write instance state if the stored version is unchanged, then bump the version.

        Raises:
            WorkflowConflictException: Version moved on, or an actor's decision
                was recorded concurrently.
        """
        expected = instance.version
        result = await self.db.execute(
            update(WorkflowInstance)
            .where(
                WorkflowInstance.id == instance.id,
                WorkflowInstance.version == expected,
            )
            .values(
                status=instance.status.value,
                current_step_name=instance.current_step_name,
                updated_at=instance.updated_at,
                completed_at=instance.completed_at,
                cancelled_by=instance.cancelled_by,
                cancellation_reason=instance.cancellation_reason,
                version=expected + 1,
            )
        )
        if result.rowcount != 1:
            logger.info(
                "Optimistic lock conflict on workflow instance %s (expected version %d)",
                instance.id,
                expected,
            )
            raise WorkflowConflictException(
                f"Workflow instance {instance.id} was modified concurrently; retry",
                instance_id=instance.id,
            )

        exec_result = await self.db.execute(
            select(StepExecution).where(StepExecution.instance_id == instance.id)
        )
        stored = {row.id: row for row in exec_result.scalars().all()}
        decision_result = await self.db.execute(
            select(StepDecision.id).where(StepDecision.step_execution_id.in_(list(stored)))
        )
        stored_decisions = set(decision_result.scalars().all())

        new_executions: list[entities.StepExecution] = []
        new_decisions: list[Base] = []
        for execution in instance.step_executions:
            row = stored.get(execution.id)
            if row is None:
                new_executions.append(execution)
                continue
            row.outcome = execution.outcome.value if execution.outcome else None
            row.resolved_at = execution.resolved_at
            new_decisions.extend(
                _decision_row(execution.id, d)
                for d in execution.decisions
                if d.id not in stored_decisions
            )
        try:
            await self.add_rows(new_decisions)
            await self._insert_executions(instance.id, new_executions)
        except IntegrityError as e:
            raise WorkflowConflictException(
                f"Conflicting decision recorded concurrently on instance {instance.id}",
                instance_id=instance.id,
            ) from e
        instance.version = expected + 1
        return instance

    async def list_by_organization(
        self, query: WorkflowInstanceQuery
    ) -> list[entities.WorkflowInstance]:
        q = select(WorkflowInstance).where(
            WorkflowInstance.organization_id == query.organization_id
        )
        if query.status is not None:
            q = q.where(WorkflowInstance.status == query.status.value)
        if query.subject_type is not None:
            q = q.where(WorkflowInstance.subject_type == query.subject_type)
        if query.subject_id is not None:
            q = q.where(WorkflowInstance.subject_id == query.subject_id)
        q = (
            q.order_by(WorkflowInstance.created_at.desc(), WorkflowInstance.id.desc())
            .offset(query.skip)
            .limit(query.limit)
        )
        result = await self.db.execute(q)
        return await self._hydrate(list(result.scalars().all()))

    async def _insert_executions(
        self, instance_id: str, executions: list[entities.StepExecution]
    ) -> None:
        parents: list[Base] = []
        dependents: list[Base] = []
        for execution in executions:
            p, d = _execution_rows(instance_id, execution)
            parents.extend(p)
            dependents.extend(d)
        # Executions before groups, groups before actors and decisions.
        await self.add_rows(r for r in parents if isinstance(r, StepExecution))
        await self.add_rows(r for r in parents if isinstance(r, StepExecutionActorGroup))
        await self.add_rows(dependents)

    async def _hydrate(
        self, rows: list[WorkflowInstance]
    ) -> list[entities.WorkflowInstance]:
        """Load attributes, executions, actor groups and decisions for rows in batch."""
        if not rows:
            return []
        instance_ids = [r.id for r in rows]

        attr_result = await self.db.execute(
            select(WorkflowInstanceAttribute).where(
                WorkflowInstanceAttribute.instance_id.in_(instance_ids)
            )
        )
        attributes: dict[str, dict] = defaultdict(dict)
        for a in attr_result.scalars().all():
            attributes[a.instance_id][a.name] = decode_value(
                a.value_kind, a.value_string, a.value_number, a.value_boolean
            )

        exec_result = await self.db.execute(
            select(StepExecution)
            .where(StepExecution.instance_id.in_(instance_ids))
            .order_by(StepExecution.sequence.asc())
        )
        exec_rows = list(exec_result.scalars().all())
        exec_ids = [e.id for e in exec_rows]

        groups: dict[str, list[entities.ActorGroup]] = defaultdict(list)
        decisions: dict[str, list[entities.DecisionRecord]] = defaultdict(list)
        if exec_ids:
            group_result = await self.db.execute(
                select(StepExecutionActorGroup)
                .where(StepExecutionActorGroup.step_execution_id.in_(exec_ids))
                .order_by(StepExecutionActorGroup.action_index.asc())
            )
            group_rows = list(group_result.scalars().all())
            actors: dict[str, list[str]] = defaultdict(list)
            if group_rows:
                actor_result = await self.db.execute(
                    select(StepExecutionActor)
                    .where(
                        StepExecutionActor.actor_group_id.in_([g.id for g in group_rows])
                    )
                    .order_by(StepExecutionActor.position.asc())
                )
                for actor in actor_result.scalars().all():
                    actors[actor.actor_group_id].append(actor.actor_id)
            for g in group_rows:
                groups[g.step_execution_id].append(
                    entities.ActorGroup(
                        action_index=g.action_index,
                        approval_mode=ApprovalMode(g.approval_mode),
                        actor_ids=tuple(actors[g.id]),
                    )
                )
            decision_result = await self.db.execute(
                select(StepDecision)
                .where(StepDecision.step_execution_id.in_(exec_ids))
                .order_by(StepDecision.decided_at.asc(), StepDecision.id.asc())
            )
            for d in decision_result.scalars().all():
                decisions[d.step_execution_id].append(
                    entities.DecisionRecord(
                        id=d.id,
                        actor_id=d.actor_id,
                        decision=DecisionType(d.decision),
                        decided_at=ensure_utc(d.decided_at),
                        note=d.note,
                    )
                )

        executions: dict[str, list[entities.StepExecution]] = defaultdict(list)
        for e in exec_rows:
            executions[e.instance_id].append(
                entities.StepExecution(
                    id=e.id,
                    sequence=e.sequence,
                    step_name=e.step_name,
                    actor_groups=groups[e.id],
                    entered_at=ensure_utc(e.entered_at),
                    decisions=decisions[e.id],
                    outcome=StepOutcome(e.outcome) if e.outcome else None,
                    resolved_at=ensure_utc(e.resolved_at),
                )
            )

        return [
            entities.WorkflowInstance(
                id=r.id,
                organization_id=r.organization_id,
                department_id=r.department_id,
                template_id=r.template_id,
                template_version=r.template_version,
                subject_type=r.subject_type,
                subject_id=r.subject_id,
                submitted_by=r.submitted_by,
                attributes=attributes[r.id],
                status=InstanceStatus(r.status),
                current_step_name=r.current_step_name,
                created_at=ensure_utc(r.created_at),
                updated_at=ensure_utc(r.updated_at),
                version=r.version,
                completed_at=ensure_utc(r.completed_at),
                cancelled_by=r.cancelled_by,
                cancellation_reason=r.cancellation_reason,
                step_executions=executions[r.id],
            )
            for r in rows
        ]
