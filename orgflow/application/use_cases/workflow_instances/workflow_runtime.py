"""Workflow instance runtime: start, decide, cancel, read.

Each operation runs inside the caller's transaction. The instance is loaded
with a row lock and saved with an optimistic version check, so concurrent
decisions on one instance serialize and the instance advances at most once
per resolved step. Any exception leaves storage untouched (rollback).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from orgflow.application.dtos.workflow_instance import OrganizationContext
from orgflow.application.services.transition_engine import (
    StepTarget,
    TerminalTarget,
    next_target,
    walk_to_applicable_step,
)
from orgflow.domain.entities.workflow_instance import (
    DecisionRecord,
    StepExecution,
    WorkflowInstance,
)
from orgflow.domain.enums import InstanceStatus
from orgflow.domain.exceptions import (
    ApproverAuthorizationException,
    ResourceNotFoundException,
    WorkflowConflictException,
    WorkflowConsistencyException,
)
from orgflow.shared.telemetry.logging import get_logger
from orgflow.shared.telemetry.tracing import add_span_attributes, add_span_event, traced
from orgflow.shared.utils.datetime import utc_now
from orgflow.shared.utils.generators import generate_cuid

if TYPE_CHECKING:
    from datetime import datetime

    from orgflow.application.dtos.workflow_instance import (
        DecisionCreate,
        WorkflowInstanceCreate,
        WorkflowInstanceQuery,
    )
    from orgflow.application.interfaces.repositories import IWorkflowInstanceRepository
    from orgflow.application.services.actor_resolver import ActorResolver
    from orgflow.application.use_cases.workflow_templates.template_service import (
        WorkflowTemplateService,
    )
    from orgflow.domain.entities.workflow_template import WorkflowStep, WorkflowTemplate

logger = get_logger(__name__)


class WorkflowRuntime:
    """Drives workflow instances through their template's step graph."""

    def __init__(
        self,
        templates: WorkflowTemplateService,
        instance_repo: IWorkflowInstanceRepository,
        actor_resolver: ActorResolver,
    ) -> None:
        self._templates = templates
        self._instance_repo = instance_repo
        self._actor_resolver = actor_resolver

    @traced("workflow_instance.start")
    async def start_instance(self, data: WorkflowInstanceCreate) -> WorkflowInstance:
        """Create an instance bound to a template version and enter its first applicable step.

        The template is data.template_id, or the organization's active
        AUTOMATIC template for the department when no id is given.

        Raises:
            ResourceNotFoundException: Template missing (or no automatic template).
            WorkflowConflictException: Template is inactive.
            ResolutionException: A step to enter has no eligible approver; nothing is stored.
        """
        template = await self._select_template(data)
        now = utc_now()
        instance = WorkflowInstance(
            id=generate_cuid(),
            organization_id=data.organization_id,
            department_id=data.department_id or template.department_id,
            template_id=template.id,
            template_version=template.version,
            subject_type=data.subject_type,
            subject_id=data.subject_id,
            submitted_by=data.submitted_by,
            attributes=dict(data.attributes),
            status=InstanceStatus.IN_PROGRESS,
            current_step_name=None,
            created_at=now,
            updated_at=now,
        )
        initial = template.get_step(template.initial_step_name)
        if initial is None:
            raise WorkflowConsistencyException(
                f"Initial step '{template.initial_step_name}' missing from template",
                template_id=template.id,
            )
        await self._enter(template, instance, initial, now)
        created = await self._instance_repo.add(instance)
        add_span_attributes(instance_id=created.id, template_id=template.id)
        logger.info(
            "Started workflow instance %s on template %s v%d for %s %s (status=%s, step=%s)",
            created.id,
            template.id,
            template.version,
            created.subject_type,
            created.subject_id,
            created.status.value,
            created.current_step_name,
        )
        return created

    @traced("workflow_instance.record_decision")
    async def record_decision(self, data: DecisionCreate) -> WorkflowInstance:
        """Record one actor's decision and advance the instance when the step resolves.

        The decision addresses the step it names, never whichever step is open
        now, so resubmitting the same decision is a no-op that returns the
        current state even after the step resolved and the instance moved on.

        Raises:
            ResourceNotFoundException: Instance not in this organization.
            ApproverAuthorizationException: Actor is not in the step's snapshot.
            WorkflowConflictException: Step not entered or already resolved,
                instance terminal, changed decision, or a concurrent update
                won the race.
        """
        instance = await self._instance_repo.get_for_update(
            data.instance_id, data.organization_id
        )
        if instance is None:
            raise ResourceNotFoundException("workflow_instance", data.instance_id)

        execution = self._target_execution(instance, data.step_name, data.execution_id)

        existing = execution.decision_of(data.actor_id)
        if existing is not None and existing.decision == data.decision:
            logger.debug(
                "Duplicate %s from %s on %s/%s ignored",
                data.decision.value,
                data.actor_id,
                instance.id,
                execution.step_name,
            )
            return instance
        if instance.is_terminal:
            raise WorkflowConflictException(
                f"Workflow instance {instance.id} is already {instance.status.value}",
                instance_id=instance.id,
                status=instance.status.value,
            )
        if not execution.is_open:
            raise WorkflowConflictException(
                f"Step '{execution.step_name}' is already resolved",
                instance_id=instance.id,
                step_name=execution.step_name,
            )
        if not execution.is_required_actor(data.actor_id):
            raise ApproverAuthorizationException(
                instance.id, execution.step_name, data.actor_id
            )
        if existing is not None:
            raise WorkflowConflictException(
                f"Actor {data.actor_id} already decided {existing.decision.value} "
                f"on step '{execution.step_name}'",
                instance_id=instance.id,
                step_name=execution.step_name,
                actor_id=data.actor_id,
            )

        now = utc_now()
        execution.decisions.append(
            DecisionRecord(
                id=generate_cuid(),
                actor_id=data.actor_id,
                decision=data.decision,
                decided_at=now,
                note=data.note,
            )
        )
        instance.updated_at = now
        add_span_attributes(instance_id=instance.id, step_name=execution.step_name)

        outcome = execution.evaluate_outcome()
        if outcome is not None:
            execution.close(outcome, now)
            add_span_event(
                "step_resolved",
                {"step_name": execution.step_name, "outcome": outcome.value},
            )
            template = await self._bound_template(instance)
            step = template.get_step(execution.step_name)
            if step is None:
                raise WorkflowConsistencyException(
                    f"Step '{execution.step_name}' missing from template {template.id}",
                    instance_id=instance.id,
                )
            target = next_target(template, step, outcome)
            if isinstance(target, TerminalTarget):
                instance.finish(target.status, now)
            else:
                await self._enter(template, instance, target.step, now)

        saved = await self._instance_repo.save(instance)
        logger.info(
            "Recorded %s by %s on instance %s step %s (status=%s, step=%s)",
            data.decision.value,
            data.actor_id,
            saved.id,
            execution.step_name,
            saved.status.value,
            saved.current_step_name,
        )
        return saved

    @traced("workflow_instance.cancel")
    async def cancel_instance(
        self,
        instance_id: str,
        organization_id: str,
        cancelled_by: str | None = None,
        reason: str | None = None,
    ) -> WorkflowInstance:
        """Cancel an in-progress instance; cancelling a cancelled instance is a no-op.

        Raises:
            ResourceNotFoundException: Instance not in this organization.
            WorkflowConflictException: Instance already APPROVED or REJECTED.
        """
        instance = await self._instance_repo.get_for_update(instance_id, organization_id)
        if instance is None:
            raise ResourceNotFoundException("workflow_instance", instance_id)
        if instance.status == InstanceStatus.CANCELLED:
            return instance
        if instance.is_terminal:
            raise WorkflowConflictException(
                f"Workflow instance {instance_id} is already {instance.status.value}",
                instance_id=instance_id,
                status=instance.status.value,
            )
        now = utc_now()
        execution = instance.current_execution
        if execution is not None:
            execution.close(None, now)
        instance.cancelled_by = cancelled_by
        instance.cancellation_reason = reason
        instance.finish(InstanceStatus.CANCELLED, now)
        saved = await self._instance_repo.save(instance)
        logger.info("Cancelled workflow instance %s", instance_id)
        return saved

    async def get_instance(
        self, instance_id: str, organization_id: str
    ) -> WorkflowInstance:
        """Return the instance with its step-execution history or raise ResourceNotFoundException."""
        instance = await self._instance_repo.get_by_id(instance_id, organization_id)
        if instance is None:
            raise ResourceNotFoundException("workflow_instance", instance_id)
        return instance

    async def list_instances(self, query: WorkflowInstanceQuery) -> list[WorkflowInstance]:
        return await self._instance_repo.list_by_organization(query)

    async def _select_template(self, data: WorkflowInstanceCreate) -> WorkflowTemplate:
        if data.template_id:
            template = await self._templates.get_template(
                data.template_id, data.organization_id
            )
        else:
            template = await self._templates.resolve_automatic_template(
                data.organization_id, data.department_id
            )
            if template is None:
                raise ResourceNotFoundException(
                    "automatic_workflow_template",
                    data.department_id or data.organization_id,
                )
        if not template.is_active:
            raise WorkflowConflictException(
                f"Workflow template {template.id} is inactive",
                template_id=template.id,
            )
        return template

    async def _bound_template(self, instance: WorkflowInstance) -> WorkflowTemplate:
        """Return the exact template version the instance started on."""
        try:
            return await self._templates.get_template(
                instance.template_id, instance.organization_id
            )
        except ResourceNotFoundException as e:
            raise WorkflowConsistencyException(
                f"Template {instance.template_id} bound to instance {instance.id} is missing",
                instance_id=instance.id,
                template_id=instance.template_id,
            ) from e

    @staticmethod
    def _target_execution(
        instance: WorkflowInstance, step_name: str, execution_id: str | None
    ) -> StepExecution:
        """Return the execution a decision addresses.

        execution_id pins one execution of step_name; otherwise the latest
        execution of step_name is used.
        """
        if execution_id is not None:
            execution = next(
                (e for e in instance.step_executions if e.id == execution_id), None
            )
        else:
            execution = instance.latest_execution_for(step_name)
        if execution is None or execution.step_name != step_name:
            raise WorkflowConflictException(
                f"Step '{step_name}' has not been entered on instance {instance.id}",
                instance_id=instance.id,
                step_name=step_name,
            )
        return execution

    async def _enter(
        self,
        template: WorkflowTemplate,
        instance: WorkflowInstance,
        step: WorkflowStep,
        now: datetime,
    ) -> None:
        """Skip forward to the first applicable step, then snapshot its approvers and open it.

        Non-matching steps are passed over without a StepExecution.
        """
        walk = walk_to_applicable_step(template, step, instance.attributes)
        if walk.skipped:
            add_span_event("steps_skipped", {"step_names": list(walk.skipped)})
            logger.debug(
                "Instance %s skipped non-matching steps %s", instance.id, walk.skipped
            )
        match walk.target:
            case TerminalTarget(status=status):
                instance.finish(status, now)
            case StepTarget(step=applicable):
                context = OrganizationContext(
                    organization_id=instance.organization_id,
                    department_id=instance.department_id,
                    submitted_by=instance.submitted_by,
                )
                groups = await self._actor_resolver.snapshot_step(applicable, context)
                instance.open_step(
                    StepExecution(
                        id=generate_cuid(),
                        sequence=len(instance.step_executions) + 1,
                        step_name=applicable.step_name,
                        actor_groups=groups,
                        entered_at=now,
                    )
                )
                instance.updated_at = now
