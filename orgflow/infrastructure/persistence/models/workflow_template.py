"""Workflow template ORM models. Normalized: template -> step -> condition/action/transition.

Rows are written once per template version; only workflow_template.is_active
changes afterwards.
"""

from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    CheckConstraint,
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
    ActionType,
    ApprovalMode,
    ConditionType,
    InstanceStatus,
    MemberRole,
    StepOutcome,
    TriggerType,
)
from orgflow.infrastructure.persistence.database import Base
from orgflow.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationModel,
    enum_check,
)

# Value kinds for schema-tagged value columns (condition values, instance attributes).
VALUE_KINDS = ("number", "string", "boolean", "null")


class WorkflowTemplate(OrganizationModel, Base):
    """Template version. Table: workflow_template. All versions of one template share lineage_id."""

    __tablename__ = "workflow_template"

    department_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    lineage_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger_type: Mapped[str] = mapped_column(
        String, nullable=False, default=TriggerType.MANUAL.value
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )
    initial_step_name: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("lineage_id", "version", name="uq_workflow_template_lineage_version"),
        Index(
            "ix_workflow_template_org_active_trigger",
            "organization_id",
            "is_active",
            "trigger_type",
        ),
        enum_check("trigger_type", TriggerType.values(), "workflow_template_trigger_type_check"),
    )


class WorkflowStep(CuidMixin, Base):
    """Template step. Table: workflow_step. step_order is display metadata only."""

    __tablename__ = "workflow_step"

    template_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_template.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step_name: Mapped[str] = mapped_column(String, nullable=False)
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    all_conditions_must_match: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )

    __table_args__ = (
        UniqueConstraint("template_id", "step_name", name="uq_workflow_step_template_name"),
    )


class WorkflowStepCondition(CuidMixin, Base):
    """Step condition (tagged by condition_type). Table: workflow_step_condition."""

    __tablename__ = "workflow_step_condition"

    step_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_step.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    condition_type: Mapped[str] = mapped_column(String, nullable=False)
    min_amount: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    max_amount: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    location_id: Mapped[str | None] = mapped_column(String, nullable=True)
    field_name: Mapped[str | None] = mapped_column(String, nullable=True)
    value_kind: Mapped[str | None] = mapped_column(String, nullable=True)
    value_string: Mapped[str | None] = mapped_column(String, nullable=True)
    value_number: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    value_boolean: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    __table_args__ = (
        UniqueConstraint("step_id", "position", name="uq_workflow_step_condition_position"),
        enum_check(
            "condition_type",
            ConditionType.values(),
            "workflow_step_condition_type_check",
        ),
        enum_check(
            "value_kind",
            ("number", "string", "boolean"),
            "workflow_step_condition_value_kind_check",
            nullable=True,
        ),
    )


class WorkflowStepAction(CuidMixin, Base):
    """Step approver action (tagged by action_type). Table: workflow_step_action."""

    __tablename__ = "workflow_step_action"

    step_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_step.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    action_type: Mapped[str] = mapped_column(String, nullable=False)
    approver_role: Mapped[str | None] = mapped_column(String, nullable=True)
    approval_mode: Mapped[str] = mapped_column(
        String, nullable=False, default=ApprovalMode.ANY.value
    )
    member_id: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("step_id", "position", name="uq_workflow_step_action_position"),
        enum_check("action_type", ActionType.values(), "workflow_step_action_type_check"),
        enum_check(
            "approval_mode", ApprovalMode.values(), "workflow_step_action_mode_check"
        ),
        enum_check(
            "approver_role",
            MemberRole.values(),
            "workflow_step_action_role_check",
            nullable=True,
        ),
    )


class WorkflowStepTransition(CuidMixin, Base):
    """Outcome transition. Table: workflow_step_transition. At most one per outcome per step."""

    __tablename__ = "workflow_step_transition"

    step_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_step.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_outcome: Mapped[str] = mapped_column(String, nullable=False)
    to_step_name: Mapped[str | None] = mapped_column(String, nullable=True)
    terminal_status: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("step_id", "from_outcome", name="uq_workflow_step_transition_outcome"),
        enum_check(
            "from_outcome", StepOutcome.values(), "workflow_step_transition_outcome_check"
        ),
        CheckConstraint(
            "(to_step_name IS NULL) <> (terminal_status IS NULL)",
            name="workflow_step_transition_target_check",
        ),
        enum_check(
            "terminal_status",
            (InstanceStatus.APPROVED.value, InstanceStatus.REJECTED.value),
            "workflow_step_transition_terminal_check",
            nullable=True,
        ),
    )
