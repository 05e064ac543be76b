"""initial_workflow_schema: templates, steps, instances, executions, decisions, members

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-17 09:12:44.118204

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7d2b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ROLES = "'OWNER', 'ADMIN', 'MANAGER', 'STAFF', 'EMPLOYEE', 'ASSISTANT', 'MEMBER'"
_OUTCOMES = "'APPROVED', 'REJECTED', 'SKIPPED'"
_MODES = "'ALL', 'ANY'"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # Templates
    op.create_table(
        "workflow_template",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("department_id", sa.String(), nullable=True),
        sa.Column("lineage_id", sa.String(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("trigger_type", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("initial_step_name", sa.String(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("lineage_id", "version", name="uq_workflow_template_lineage_version"),
        sa.CheckConstraint(
            "trigger_type IN ('MANUAL', 'AUTOMATIC')",
            name="workflow_template_trigger_type_check",
        ),
    )
    op.create_index("ix_workflow_template_organization_id", "workflow_template", ["organization_id"])
    op.create_index("ix_workflow_template_department_id", "workflow_template", ["department_id"])
    op.create_index("ix_workflow_template_lineage_id", "workflow_template", ["lineage_id"])
    op.create_index(
        "ix_workflow_template_org_active_trigger",
        "workflow_template",
        ["organization_id", "is_active", "trigger_type"],
    )

    op.create_table(
        "workflow_step",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("template_id", sa.String(), nullable=False),
        sa.Column("step_name", sa.String(), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "all_conditions_must_match",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["template_id"], ["workflow_template.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("template_id", "step_name", name="uq_workflow_step_template_name"),
    )
    op.create_index("ix_workflow_step_template_id", "workflow_step", ["template_id"])

    op.create_table(
        "workflow_step_condition",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("step_id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("condition_type", sa.String(), nullable=False),
        sa.Column("min_amount", sa.Numeric(), nullable=True),
        sa.Column("max_amount", sa.Numeric(), nullable=True),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("location_id", sa.String(), nullable=True),
        sa.Column("field_name", sa.String(), nullable=True),
        sa.Column("value_kind", sa.String(), nullable=True),
        sa.Column("value_string", sa.String(), nullable=True),
        sa.Column("value_number", sa.Numeric(), nullable=True),
        sa.Column("value_boolean", sa.Boolean(), nullable=True),
        sa.ForeignKeyConstraint(["step_id"], ["workflow_step.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("step_id", "position", name="uq_workflow_step_condition_position"),
        sa.CheckConstraint(
            "condition_type IN ('AMOUNT_RANGE', 'EXPENSE_CATEGORY', 'LOCATION', "
            "'RECEIPT_REQUIRED', 'FIELD_EQUALS')",
            name="workflow_step_condition_type_check",
        ),
        sa.CheckConstraint(
            "value_kind IS NULL OR value_kind IN ('number', 'string', 'boolean')",
            name="workflow_step_condition_value_kind_check",
        ),
    )
    op.create_index("ix_workflow_step_condition_step_id", "workflow_step_condition", ["step_id"])

    op.create_table(
        "workflow_step_action",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("step_id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("action_type", sa.String(), nullable=False),
        sa.Column("approver_role", sa.String(), nullable=True),
        sa.Column("approval_mode", sa.String(), nullable=False),
        sa.Column("member_id", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["step_id"], ["workflow_step.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("step_id", "position", name="uq_workflow_step_action_position"),
        sa.CheckConstraint(
            "action_type IN ('ROLE', 'SPECIFIC_MEMBER')",
            name="workflow_step_action_type_check",
        ),
        sa.CheckConstraint(
            f"approval_mode IN ({_MODES})", name="workflow_step_action_mode_check"
        ),
        sa.CheckConstraint(
            f"approver_role IS NULL OR approver_role IN ({_ROLES})",
            name="workflow_step_action_role_check",
        ),
    )
    op.create_index("ix_workflow_step_action_step_id", "workflow_step_action", ["step_id"])

    op.create_table(
        "workflow_step_transition",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("step_id", sa.String(), nullable=False),
        sa.Column("from_outcome", sa.String(), nullable=False),
        sa.Column("to_step_name", sa.String(), nullable=True),
        sa.Column("terminal_status", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["step_id"], ["workflow_step.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("step_id", "from_outcome", name="uq_workflow_step_transition_outcome"),
        sa.CheckConstraint(
            f"from_outcome IN ({_OUTCOMES})",
            name="workflow_step_transition_outcome_check",
        ),
        sa.CheckConstraint(
            "(to_step_name IS NULL) <> (terminal_status IS NULL)",
            name="workflow_step_transition_target_check",
        ),
        sa.CheckConstraint(
            "terminal_status IS NULL OR terminal_status IN ('APPROVED', 'REJECTED')",
            name="workflow_step_transition_terminal_check",
        ),
    )
    op.create_index("ix_workflow_step_transition_step_id", "workflow_step_transition", ["step_id"])

    # Instances
    op.create_table(
        "workflow_instance",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("department_id", sa.String(), nullable=True),
        sa.Column("template_id", sa.String(), nullable=False),
        sa.Column("template_version", sa.Integer(), nullable=False),
        sa.Column("subject_type", sa.String(), nullable=False),
        sa.Column("subject_id", sa.String(), nullable=False),
        sa.Column("submitted_by", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("current_step_name", sa.String(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["template_id"], ["workflow_template.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('IN_PROGRESS', 'APPROVED', 'REJECTED', 'CANCELLED')",
            name="workflow_instance_status_check",
        ),
    )
    op.create_index("ix_workflow_instance_organization_id", "workflow_instance", ["organization_id"])
    op.create_index("ix_workflow_instance_template_id", "workflow_instance", ["template_id"])
    op.create_index(
        "ix_workflow_instance_org_status", "workflow_instance", ["organization_id", "status"]
    )
    op.create_index(
        "ix_workflow_instance_org_subject",
        "workflow_instance",
        ["organization_id", "subject_type", "subject_id"],
    )

    op.create_table(
        "workflow_instance_attribute",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("instance_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("value_kind", sa.String(), nullable=False),
        sa.Column("value_string", sa.String(), nullable=True),
        sa.Column("value_number", sa.Numeric(), nullable=True),
        sa.Column("value_boolean", sa.Boolean(), nullable=True),
        sa.ForeignKeyConstraint(["instance_id"], ["workflow_instance.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("instance_id", "name", name="uq_workflow_instance_attribute_name"),
        sa.CheckConstraint(
            "value_kind IN ('number', 'string', 'boolean', 'null')",
            name="workflow_instance_attribute_kind_check",
        ),
    )
    op.create_index(
        "ix_workflow_instance_attribute_instance_id",
        "workflow_instance_attribute",
        ["instance_id"],
    )

    op.create_table(
        "step_execution",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("instance_id", sa.String(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("step_name", sa.String(), nullable=False),
        sa.Column("outcome", sa.String(), nullable=True),
        sa.Column("entered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["instance_id"], ["workflow_instance.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("instance_id", "sequence", name="uq_step_execution_sequence"),
        sa.CheckConstraint(
            f"outcome IS NULL OR outcome IN ({_OUTCOMES})",
            name="step_execution_outcome_check",
        ),
    )
    op.create_index("ix_step_execution_instance_id", "step_execution", ["instance_id"])

    op.create_table(
        "step_execution_actor_group",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("step_execution_id", sa.String(), nullable=False),
        sa.Column("action_index", sa.Integer(), nullable=False),
        sa.Column("approval_mode", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(
            ["step_execution_id"], ["step_execution.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "step_execution_id", "action_index", name="uq_step_execution_actor_group_action"
        ),
        sa.CheckConstraint(
            f"approval_mode IN ({_MODES})", name="step_execution_actor_group_mode_check"
        ),
    )
    op.create_index(
        "ix_step_execution_actor_group_step_execution_id",
        "step_execution_actor_group",
        ["step_execution_id"],
    )

    op.create_table(
        "step_execution_actor",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("actor_group_id", sa.String(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["actor_group_id"], ["step_execution_actor_group.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("actor_group_id", "actor_id", name="uq_step_execution_actor"),
    )
    op.create_index(
        "ix_step_execution_actor_actor_group_id", "step_execution_actor", ["actor_group_id"]
    )

    op.create_table(
        "step_decision",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("step_execution_id", sa.String(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("decision", sa.String(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["step_execution_id"], ["step_execution.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("step_execution_id", "actor_id", name="uq_step_decision_actor"),
        sa.CheckConstraint(
            "decision IN ('APPROVE', 'REJECT')", name="step_decision_decision_check"
        ),
    )
    op.create_index(
        "ix_step_decision_step_execution_id", "step_decision", ["step_execution_id"]
    )

    # Membership read model
    op.create_table(
        "organization_member",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("member_id", sa.String(), nullable=False),
        sa.Column("department_id", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "organization_id", "member_id", "department_id", name="uq_organization_member_scope"
        ),
        sa.CheckConstraint(f"role IN ({_ROLES})", name="organization_member_role_check"),
    )
    op.create_index(
        "ix_organization_member_organization_id", "organization_member", ["organization_id"]
    )
    op.create_index(
        "ix_organization_member_org_role", "organization_member", ["organization_id", "role"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("organization_member")
    op.drop_table("step_decision")
    op.drop_table("step_execution_actor")
    op.drop_table("step_execution_actor_group")
    op.drop_table("step_execution")
    op.drop_table("workflow_instance_attribute")
    op.drop_table("workflow_instance")
    op.drop_table("workflow_step_transition")
    op.drop_table("workflow_step_action")
    op.drop_table("workflow_step_condition")
    op.drop_table("workflow_step")
    op.drop_table("workflow_template")
