"""Workflow instance ORM models: instance, attributes, step executions, actor snapshot, decisions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from orgflow.domain.enums import (
    ApprovalMode,
    DecisionType,
    InstanceStatus,
    StepOutcome,
)
from orgflow.infrastructure.persistence.database import Base
from orgflow.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationModel,
    VersionedMixin,
    enum_check,
)
from orgflow.infrastructure.persistence.models.workflow_template import VALUE_KINDS


class WorkflowInstance(OrganizationModel, VersionedMixin, Base):
    """One run of a template version. Table: workflow_instance. version is the optimistic lock."""

    __tablename__ = "workflow_instance"

    department_id: Mapped[str | None] = mapped_column(String, nullable=True)
    template_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_template.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    template_version: Mapped[int] = mapped_column(Integer, nullable=False)
    subject_type: Mapped[str] = mapped_column(String, nullable=False)
    subject_id: Mapped[str] = mapped_column(String, nullable=False)
    submitted_by: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=InstanceStatus.IN_PROGRESS.value
    )
    current_step_name: Mapped[str | None] = mapped_column(String, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_by: Mapped[str | None] = mapped_column(String, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_workflow_instance_org_status", "organization_id", "status"),
        Index(
            "ix_workflow_instance_org_subject",
            "organization_id",
            "subject_type",
            "subject_id",
        ),
        enum_check("status", InstanceStatus.values(), "workflow_instance_status_check"),
    )


class WorkflowInstanceAttribute(CuidMixin, Base):
    """Submitted attribute snapshot, one row per key. Table: workflow_instance_attribute."""

    __tablename__ = "workflow_instance_attribute"

    instance_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_instance.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    value_kind: Mapped[str] = mapped_column(String, nullable=False)
    value_string: Mapped[str | None] = mapped_column(String, nullable=True)
    value_number: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    value_boolean: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    __table_args__ = (
        UniqueConstraint("instance_id", "name", name="uq_workflow_instance_attribute_name"),
        enum_check("value_kind", VALUE_KINDS, "workflow_instance_attribute_kind_check"),
    )


class StepExecution(CuidMixin, Base):
    """Append-only record of one step's lifetime. Table: step_execution."""

    __tablename__ = "step_execution"

    instance_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_instance.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    step_name: Mapped[str] = mapped_column(String, nullable=False)
    outcome: Mapped[str | None] = mapped_column(String, nullable=True)
    entered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("instance_id", "sequence", name="uq_step_execution_sequence"),
        enum_check(
            "outcome",
            StepOutcome.values(),
            "step_execution_outcome_check",
            nullable=True,
        ),
    )


class StepExecutionActorGroup(CuidMixin, Base):
    """Approvers snapshotted from one step action at entry. Table: step_execution_actor_group."""

    __tablename__ = "step_execution_actor_group"

    step_execution_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("step_execution.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action_index: Mapped[int] = mapped_column(Integer, nullable=False)
    approval_mode: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "step_execution_id", "action_index", name="uq_step_execution_actor_group_action"
        ),
        enum_check(
            "approval_mode", ApprovalMode.values(), "step_execution_actor_group_mode_check"
        ),
    )


class StepExecutionActor(CuidMixin, Base):
    """One required actor within a group. Table: step_execution_actor."""

    __tablename__ = "step_execution_actor"

    actor_group_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("step_execution_actor_group.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[str] = mapped_column(String, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("actor_group_id", "actor_id", name="uq_step_execution_actor"),
    )


class StepDecision(CuidMixin, Base):
    """One actor's decision on a step execution. Table: step_decision. One per actor per execution."""

    __tablename__ = "step_decision"

    step_execution_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("step_execution.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[str] = mapped_column(String, nullable=False)
    decision: Mapped[str] = mapped_column(String, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("step_execution_id", "actor_id", name="uq_step_decision_actor"),
        enum_check("decision", DecisionType.values(), "step_decision_decision_check"),
    )
