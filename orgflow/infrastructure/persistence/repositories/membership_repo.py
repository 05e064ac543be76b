"""SQL membership directory over organization_member (implements IMembershipDirectory)."""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from orgflow.domain.enums import MemberRole
from orgflow.infrastructure.persistence.models.organization_member import (
    OrganizationMember,
)
from orgflow.infrastructure.persistence.repositories.base import BaseRepository


class MembershipRepository(BaseRepository[OrganizationMember]):
    """Read-only membership lookups used when entering a step."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, OrganizationMember)

    async def list_members_with_role(
        self,
        organization_id: str,
        department_id: str | None,
        role: MemberRole,
    ) -> list[str]:
        """Return distinct active member ids with role; department scope includes organization-wide members."""
        q = select(OrganizationMember.member_id).where(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.role == role.value,
            OrganizationMember.is_active.is_(True),
        )
        if department_id is not None:
            q = q.where(
                or_(
                    OrganizationMember.department_id == department_id,
                    OrganizationMember.department_id.is_(None),
                )
            )
        q = q.distinct().order_by(OrganizationMember.member_id.asc())
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def is_active_member(self, organization_id: str, member_id: str) -> bool:
        result = await self.db.execute(
            select(OrganizationMember.id)
            .where(
                OrganizationMember.organization_id == organization_id,
                OrganizationMember.member_id == member_id,
                OrganizationMember.is_active.is_(True),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
