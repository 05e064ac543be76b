"""Organization membership read model. Table: organization_member.

Maintained by the membership service; the engine only reads it to resolve
approvers. department_id NULL means the membership applies organization-wide.
"""

import sqlalchemy as sa
from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from orgflow.domain.enums import MemberRole
from orgflow.infrastructure.persistence.database import Base
from orgflow.infrastructure.persistence.models.mixins import OrganizationModel, enum_check


class OrganizationMember(OrganizationModel, Base):
    """A member's role in an organization (optionally one department)."""

    __tablename__ = "organization_member"

    member_id: Mapped[str] = mapped_column(String, nullable=False)
    department_id: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )

    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "member_id",
            "department_id",
            name="uq_organization_member_scope",
        ),
        Index("ix_organization_member_org_role", "organization_id", "role"),
        enum_check("role", MemberRole.values(), "organization_member_role_check"),
    )
