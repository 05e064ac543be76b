"""Workflow template repository. Writes normalized rows, returns domain entities."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, assert_never

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orgflow.domain import entities
from orgflow.domain.enums import (
    ApprovalMode,
    ConditionType,
    InstanceStatus,
    MemberRole,
    StepOutcome,
    TriggerType,
)
from orgflow.domain.exceptions import (
    WorkflowConflictException,
    WorkflowConsistencyException,
)
from orgflow.domain.value_objects.workflow import (
    Action,
    AmountRangeCondition,
    Condition,
    ExpenseCategoryCondition,
    FieldEqualsCondition,
    LocationCondition,
    ReceiptRequiredCondition,
    RoleAction,
    SpecificMemberAction,
    Transition,
)
from orgflow.infrastructure.persistence.models.workflow_template import (
    WorkflowStep,
    WorkflowStepAction,
    WorkflowStepCondition,
    WorkflowStepTransition,
    WorkflowTemplate,
)
from orgflow.infrastructure.persistence.repositories.base import BaseRepository
from orgflow.infrastructure.persistence.repositories.value_codec import (
    decode_value,
    encode_value,
)
from orgflow.shared.utils.datetime import ensure_utc
from orgflow.shared.utils.generators import generate_cuid

if TYPE_CHECKING:
    from orgflow.application.dtos.workflow_template import WorkflowTemplateCreate


def _condition_row(step_id: str, position: int, condition: Condition) -> WorkflowStepCondition:
    row = WorkflowStepCondition(
        id=generate_cuid(),
        step_id=step_id,
        position=position,
        condition_type=condition.type.value,
    )
    match condition:
        case AmountRangeCondition(min_amount=low, max_amount=high):
            row.min_amount = low
            row.max_amount = high
        case ExpenseCategoryCondition(category=category):
            row.category = category
        case LocationCondition(location_id=location_id):
            row.location_id = location_id
        case ReceiptRequiredCondition():
            pass
        case FieldEqualsCondition(field=field_name, value=value):
            encoded = encode_value(value)
            row.field_name = field_name
            row.value_kind = encoded.value_kind
            row.value_string = encoded.value_string
            row.value_number = encoded.value_number
            row.value_boolean = encoded.value_boolean
        case _:
            assert_never(condition)
    return row


def _action_row(step_id: str, position: int, action: Action) -> WorkflowStepAction:
    row = WorkflowStepAction(
        id=generate_cuid(),
        step_id=step_id,
        position=position,
        action_type=action.type.value,
        approval_mode=action.approval_mode.value,
    )
    match action:
        case RoleAction(approver_role=role):
            row.approver_role = role.value
        case SpecificMemberAction(member_id=member_id):
            row.member_id = member_id
        case _:
            assert_never(action)
    return row


def _to_condition(row: WorkflowStepCondition) -> Condition:
    match ConditionType(row.condition_type):
        case ConditionType.AMOUNT_RANGE:
            return AmountRangeCondition(min_amount=row.min_amount, max_amount=row.max_amount)
        case ConditionType.EXPENSE_CATEGORY:
            return ExpenseCategoryCondition(category=row.category or "")
        case ConditionType.LOCATION:
            return LocationCondition(location_id=row.location_id or "")
        case ConditionType.RECEIPT_REQUIRED:
            return ReceiptRequiredCondition()
        case ConditionType.FIELD_EQUALS:
            value = decode_value(
                row.value_kind, row.value_string, row.value_number, row.value_boolean
            )
            if value is None:
                raise WorkflowConsistencyException(
                    "FIELD_EQUALS condition has no value", condition_id=row.id
                )
            return FieldEqualsCondition(field=row.field_name or "", value=value)


def _to_action(row: WorkflowStepAction) -> Action:
    if row.action_type == SpecificMemberAction.type.value:
        return SpecificMemberAction(member_id=row.member_id or "")
    return RoleAction(
        approver_role=MemberRole(row.approver_role),
        approval_mode=ApprovalMode(row.approval_mode),
    )


def _to_transition(row: WorkflowStepTransition) -> Transition:
    return Transition(
        from_outcome=StepOutcome(row.from_outcome),
        to_step_name=row.to_step_name,
        terminal_status=InstanceStatus(row.terminal_status) if row.terminal_status else None,
    )


class WorkflowTemplateRepository(BaseRepository[WorkflowTemplate]):
    """Workflow template repository. Organization-scoped by query."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowTemplate)

    async def create_version(
        self,
        data: WorkflowTemplateCreate,
        *,
        lineage_id: str | None = None,
        version: int = 1,
    ) -> entities.WorkflowTemplate:
        """Insert the template row and all step rows; return the stored version.

        Raises:
            WorkflowConflictException: Another revision took this version of
                the lineage first.
        """
        template_id = generate_cuid()
        lineage_id = lineage_id or template_id
        row = WorkflowTemplate(
            id=template_id,
            organization_id=data.organization_id,
            department_id=data.department_id,
            lineage_id=lineage_id,
            version=version,
            name=data.name,
            description=data.description,
            trigger_type=data.trigger_type.value,
            is_active=data.is_active,
            initial_step_name=data.initial_step_name,
        )
        try:
            row = await self.create(row)
        except IntegrityError as e:
            raise WorkflowConflictException(
                f"Version {version} of template lineage {lineage_id} already exists",
                lineage_id=lineage_id,
                version=version,
            ) from e

        children: list = []
        for step in data.steps:
            step_id = generate_cuid()
            children.append(
                WorkflowStep(
                    id=step_id,
                    template_id=template_id,
                    step_name=step.step_name,
                    step_order=step.order,
                    description=step.description,
                    all_conditions_must_match=step.all_conditions_must_match,
                )
            )
            children.extend(
                _condition_row(step_id, i, c) for i, c in enumerate(step.conditions)
            )
            children.extend(_action_row(step_id, i, a) for i, a in enumerate(step.actions))
            children.extend(
                WorkflowStepTransition(
                    id=generate_cuid(),
                    step_id=step_id,
                    from_outcome=t.from_outcome.value,
                    to_step_name=t.to_step_name,
                    terminal_status=t.terminal_status.value if t.terminal_status else None,
                )
                for t in step.transitions
            )
        # Steps first so child foreign keys resolve.
        await self.add_rows(c for c in children if isinstance(c, WorkflowStep))
        await self.add_rows(c for c in children if not isinstance(c, WorkflowStep))
        (template,) = await self._hydrate([row])
        return template

    async def get_by_id(
        self, template_id: str, organization_id: str
    ) -> entities.WorkflowTemplate | None:
        """Return template version by id if it belongs to the organization."""
        result = await self.db.execute(
            select(WorkflowTemplate).where(
                WorkflowTemplate.id == template_id,
                WorkflowTemplate.organization_id == organization_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        (template,) = await self._hydrate([row])
        return template

    async def get_latest_version(self, lineage_id: str) -> entities.WorkflowTemplate | None:
        result = await self.db.execute(
            select(WorkflowTemplate)
            .where(WorkflowTemplate.lineage_id == lineage_id)
            .order_by(WorkflowTemplate.version.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        (template,) = await self._hydrate([row])
        return template

    async def list_by_organization(
        self,
        organization_id: str,
        department_id: str | None = None,
        include_inactive: bool = False,
    ) -> list[entities.WorkflowTemplate]:
        q = select(WorkflowTemplate).where(
            WorkflowTemplate.organization_id == organization_id
        )
        if department_id is not None:
            q = q.where(WorkflowTemplate.department_id == department_id)
        if not include_inactive:
            q = q.where(WorkflowTemplate.is_active.is_(True))
        q = q.order_by(WorkflowTemplate.name.asc(), WorkflowTemplate.version.desc())
        result = await self.db.execute(q)
        return await self._hydrate(list(result.scalars().all()))

    async def find_active_automatic(
        self, organization_id: str, department_id: str | None
    ) -> entities.WorkflowTemplate | None:
        """Newest active AUTOMATIC template: department-specific first, then organization-wide."""
        base = select(WorkflowTemplate).where(
            WorkflowTemplate.organization_id == organization_id,
            WorkflowTemplate.is_active.is_(True),
            WorkflowTemplate.trigger_type == TriggerType.AUTOMATIC.value,
        )
        scopes = [WorkflowTemplate.department_id.is_(None)]
        if department_id is not None:
            scopes.insert(0, WorkflowTemplate.department_id == department_id)
        for scope in scopes:
            result = await self.db.execute(
                base.where(scope)
                .order_by(WorkflowTemplate.created_at.desc(), WorkflowTemplate.version.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            if row is not None:
                (template,) = await self._hydrate([row])
                return template
        return None

    async def set_active(
        self, template_id: str, organization_id: str, is_active: bool
    ) -> entities.WorkflowTemplate | None:
        """Update is_active only."""
        result = await self.db.execute(
            update(WorkflowTemplate)
            .where(
                WorkflowTemplate.id == template_id,
                WorkflowTemplate.organization_id == organization_id,
            )
            .values(is_active=is_active)
            .returning(WorkflowTemplate.id)
        )
        if result.scalar_one_or_none() is None:
            return None
        return await self.get_by_id(template_id, organization_id)

    async def _hydrate(
        self, rows: list[WorkflowTemplate]
    ) -> list[entities.WorkflowTemplate]:
        """Load steps and their children for rows in four queries."""
        if not rows:
            return []
        step_result = await self.db.execute(
            select(WorkflowStep)
            .where(WorkflowStep.template_id.in_([r.id for r in rows]))
            .order_by(WorkflowStep.step_order.asc(), WorkflowStep.step_name.asc())
        )
        step_rows = list(step_result.scalars().all())
        step_ids = [s.id for s in step_rows]

        conditions: dict[str, list[Condition]] = defaultdict(list)
        actions: dict[str, list[Action]] = defaultdict(list)
        transitions: dict[str, list[Transition]] = defaultdict(list)
        if step_ids:
            c_result = await self.db.execute(
                select(WorkflowStepCondition)
                .where(WorkflowStepCondition.step_id.in_(step_ids))
                .order_by(WorkflowStepCondition.position.asc())
            )
            for c in c_result.scalars().all():
                conditions[c.step_id].append(_to_condition(c))
            a_result = await self.db.execute(
                select(WorkflowStepAction)
                .where(WorkflowStepAction.step_id.in_(step_ids))
                .order_by(WorkflowStepAction.position.asc())
            )
            for a in a_result.scalars().all():
                actions[a.step_id].append(_to_action(a))
            t_result = await self.db.execute(
                select(WorkflowStepTransition).where(
                    WorkflowStepTransition.step_id.in_(step_ids)
                )
            )
            for t in t_result.scalars().all():
                transitions[t.step_id].append(_to_transition(t))

        steps_by_template: dict[str, list[entities.WorkflowStep]] = defaultdict(list)
        for s in step_rows:
            steps_by_template[s.template_id].append(
                entities.WorkflowStep(
                    step_name=s.step_name,
                    order=s.step_order,
                    description=s.description,
                    all_conditions_must_match=s.all_conditions_must_match,
                    conditions=tuple(conditions[s.id]),
                    actions=tuple(actions[s.id]),
                    transitions=tuple(
                        sorted(transitions[s.id], key=lambda t: t.from_outcome.value)
                    ),
                )
            )
        return [
            entities.WorkflowTemplate(
                id=r.id,
                organization_id=r.organization_id,
                department_id=r.department_id,
                lineage_id=r.lineage_id,
                version=r.version,
                name=r.name,
                description=r.description,
                trigger_type=TriggerType(r.trigger_type),
                is_active=r.is_active,
                initial_step_name=r.initial_step_name,
                steps=tuple(steps_by_template[r.id]),
                created_at=ensure_utc(r.created_at),
            )
            for r in rows
        ]
