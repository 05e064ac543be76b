"""Resolves step actions to the concrete members who must decide.

Resolution happens once, when a step is entered; the result is snapshotted on
the step execution. The submitter is never a required approver.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from orgflow.domain.entities.workflow_instance import ActorGroup
from orgflow.domain.exceptions import ResolutionException
from orgflow.domain.value_objects.workflow import RoleAction, SpecificMemberAction
from orgflow.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from orgflow.application.dtos.workflow_instance import OrganizationContext
    from orgflow.application.interfaces.repositories import IMembershipDirectory
    from orgflow.domain.entities.workflow_template import WorkflowStep
    from orgflow.domain.value_objects.workflow import Action

logger = get_logger(__name__)


class ActorResolver:
    """Turns ROLE and SPECIFIC_MEMBER actions into actor ids via the membership directory."""

    def __init__(self, directory: IMembershipDirectory) -> None:
        self._directory = directory

    async def resolve(
        self,
        action: Action,
        context: OrganizationContext,
        step_name: str,
    ) -> tuple[str, ...]:
        """Return the de-duplicated actor ids for action.

        Raises:
            ResolutionException: If no eligible approver remains.
        """
        match action:
            case RoleAction(approver_role=role):
                members = await self._directory.list_members_with_role(
                    context.organization_id, context.department_id, role
                )
                actors = tuple(
                    dict.fromkeys(m for m in members if m != context.submitted_by)
                )
                if not actors:
                    raise ResolutionException(
                        step_name,
                        f"no eligible approver with role {role.value}",
                        role=role.value,
                        department_id=context.department_id,
                    )
                return actors
            case SpecificMemberAction(member_id=member_id):
                if member_id == context.submitted_by:
                    raise ResolutionException(
                        step_name,
                        "submitter cannot approve their own submission",
                        member_id=member_id,
                    )
                if not await self._directory.is_active_member(
                    context.organization_id, member_id
                ):
                    raise ResolutionException(
                        step_name,
                        "approver is not an active member of the organization",
                        member_id=member_id,
                    )
                return (member_id,)
            case _:
                assert_never(action)

    async def snapshot_step(
        self, step: WorkflowStep, context: OrganizationContext
    ) -> list[ActorGroup]:
        """Resolve every action of step into one ActorGroup each."""
        groups: list[ActorGroup] = []
        for index, action in enumerate(step.actions):
            actor_ids = await self.resolve(action, context, step.step_name)
            groups.append(
                ActorGroup(
                    action_index=index,
                    approval_mode=action.approval_mode,
                    actor_ids=actor_ids,
                )
            )
        logger.debug(
            "Resolved %d actor group(s) for step %s in organization %s",
            len(groups),
            step.step_name,
            context.organization_id,
        )
        return groups
