"""Workflow instance aggregate: one execution of a template version against a submitted object.

The instance owns its step executions. A step execution snapshots the
required actors when the step is entered; later membership changes never
alter who may decide an open step. Executions and decisions are append-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from orgflow.domain.enums import ApprovalMode, DecisionType, InstanceStatus, StepOutcome
from orgflow.domain.value_objects.workflow import AttributeValue


@dataclass(frozen=True)
class ActorGroup:
    """Approvers resolved from one step action, with that action's approval mode."""

    action_index: int
    approval_mode: ApprovalMode
    actor_ids: tuple[str, ...]

    def outcome(self, decisions: list[DecisionRecord]) -> StepOutcome | None:
        """Return APPROVED/REJECTED once this group is decided, else None.

        ANY: the first decision by a member decides the group.
        ALL: any rejection rejects; every member approving approves.
        """
        member_decisions = [d for d in decisions if d.actor_id in self.actor_ids]
        if not member_decisions:
            return None
        if self.approval_mode == ApprovalMode.ANY:
            return _outcome_of(member_decisions[0].decision)
        if any(d.decision == DecisionType.REJECT for d in member_decisions):
            return StepOutcome.REJECTED
        approved = {d.actor_id for d in member_decisions}
        if approved.issuperset(self.actor_ids):
            return StepOutcome.APPROVED
        return None


def _outcome_of(decision: DecisionType) -> StepOutcome:
    if decision == DecisionType.APPROVE:
        return StepOutcome.APPROVED
    return StepOutcome.REJECTED


@dataclass(frozen=True)
class DecisionRecord:
    """One actor's decision on a step execution."""

    id: str
    actor_id: str
    decision: DecisionType
    decided_at: datetime
    note: str | None = None


@dataclass
class StepExecution:
    """Durable record of one step's lifetime within an instance."""

    id: str
    sequence: int
    step_name: str
    actor_groups: list[ActorGroup]
    entered_at: datetime
    decisions: list[DecisionRecord] = field(default_factory=list)
    outcome: StepOutcome | None = None
    resolved_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.resolved_at is None

    @property
    def required_actor_ids(self) -> tuple[str, ...]:
        """Union of all groups' actors, in snapshot order."""
        seen: dict[str, None] = {}
        for group in self.actor_groups:
            for actor_id in group.actor_ids:
                seen.setdefault(actor_id, None)
        return tuple(seen)

    def is_required_actor(self, actor_id: str) -> bool:
        return any(actor_id in group.actor_ids for group in self.actor_groups)

    def decision_of(self, actor_id: str) -> DecisionRecord | None:
        for record in self.decisions:
            if record.actor_id == actor_id:
                return record
        return None

    def evaluate_outcome(self) -> StepOutcome | None:
        """Return the step outcome implied by recorded decisions, or None while pending.

        Any rejected group rejects the step; the step is approved once every
        group is approved.
        """
        group_outcomes = [group.outcome(self.decisions) for group in self.actor_groups]
        if StepOutcome.REJECTED in group_outcomes:
            return StepOutcome.REJECTED
        if group_outcomes and all(o == StepOutcome.APPROVED for o in group_outcomes):
            return StepOutcome.APPROVED
        return None

    def close(self, outcome: StepOutcome | None, at: datetime) -> None:
        """Resolve the execution. outcome is None when closed by cancellation."""
        self.outcome = outcome
        self.resolved_at = at


@dataclass
class WorkflowInstance:
    """Aggregate root for one submitted object's approval run."""

    id: str
    organization_id: str
    department_id: str | None
    template_id: str
    template_version: int
    subject_type: str
    subject_id: str
    submitted_by: str | None
    attributes: dict[str, AttributeValue]
    status: InstanceStatus
    current_step_name: str | None
    created_at: datetime
    updated_at: datetime
    version: int = 1
    completed_at: datetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    step_executions: list[StepExecution] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def current_execution(self) -> StepExecution | None:
        """Return the open step execution, or None when terminal."""
        if self.step_executions and self.step_executions[-1].is_open:
            return self.step_executions[-1]
        return None

    def latest_execution_for(self, step_name: str) -> StepExecution | None:
        """Return the most recent execution of step_name (steps may repeat in cycles)."""
        for execution in reversed(self.step_executions):
            if execution.step_name == step_name:
                return execution
        return None

    def belongs_to_organization(self, organization_id: str) -> bool:
        return self.organization_id == organization_id

    def open_step(self, execution: StepExecution) -> None:
        self.step_executions.append(execution)
        self.current_step_name = execution.step_name

    def finish(self, status: InstanceStatus, at: datetime) -> None:
        """Move to a terminal status. Caller guarantees the instance is in progress."""
        self.status = status
        self.current_step_name = None
        self.completed_at = at
        self.updated_at = at
