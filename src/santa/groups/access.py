"""Access-control layer for group-scoped operations.

Every function takes the caller's user id explicitly and resolves it to a
membership row (or the absence of one). Reads need membership, assignment
and settings mutations need the ADMIN role.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from santa.db.models import Group, GroupMembership, MemberRole
from santa.errors import Forbidden, NotFound


async def get_group(db: AsyncSession, group_id: int) -> Group | None:
    result = await db.execute(select(Group).where(Group.id == group_id))
    return result.scalar_one_or_none()


async def get_membership(db: AsyncSession, group_id: int, user_id: int) -> GroupMembership | None:
    result = await db.execute(
        select(GroupMembership).where(
            GroupMembership.group_id == group_id,
            GroupMembership.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


def is_admin(membership: GroupMembership | None) -> bool:
    return membership is not None and membership.role == MemberRole.ADMIN.value


async def require_member(db: AsyncSession, group_id: int, user_id: int) -> GroupMembership:
    """Return the caller's membership, or raise NotFound / Forbidden."""
    if await get_group(db, group_id) is None:
        raise NotFound("Group not found")
    membership = await get_membership(db, group_id, user_id)
    if membership is None:
        raise Forbidden("Not a member of this group")
    return membership


async def require_admin(
    db: AsyncSession,
    group_id: int,
    user_id: int,
    action: str = "perform this action",
) -> GroupMembership:
    """Like require_member, but the membership must carry the ADMIN role."""
    membership = await require_member(db, group_id, user_id)
    if not is_admin(membership):
        raise Forbidden(f"Only admins can {action}")
    return membership
