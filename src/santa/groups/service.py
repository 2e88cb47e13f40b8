"""Group and membership registry.

Rules:
- The creator of a group becomes its first ADMIN member
- Invite codes are server-generated and unique
- Joining by invite code is the only way to gain membership
- Only ADMIN members change the assignment mode
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from santa.db.models import AssignmentMode, Group, GroupMembership, MemberRole, User, WishlistItem
from santa.errors import AlreadyMember, InvalidInviteCode
from santa.groups.access import get_membership, require_admin
from santa.groups.invite_codes import generate_unique_invite_code, normalize_invite_code

logger = structlog.get_logger()


async def create_group(
    db: AsyncSession,
    owner_id: int,
    name: str,
    description: str | None = None,
) -> Group:
    """Create a group. The creator becomes its admin."""
    now = datetime.now(timezone.utc)
    group = Group(
        name=name,
        description=description,
        invite_code=await generate_unique_invite_code(db),
        assignment_mode=AssignmentMode.RANDOM.value,
        created_by_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    db.add(group)
    await db.flush()

    db.add(GroupMembership(
        group_id=group.id,
        user_id=owner_id,
        role=MemberRole.ADMIN.value,
        joined_at=now,
    ))
    await db.flush()

    logger.info("group_created", group_id=group.id, owner_id=owner_id)
    return group


async def list_groups(db: AsyncSession, user_id: int) -> list[Group]:
    """Groups the user belongs to, newest first."""
    result = await db.execute(
        select(Group)
        .join(GroupMembership, GroupMembership.group_id == Group.id)
        .where(GroupMembership.user_id == user_id)
        .order_by(Group.created_at.desc(), Group.id.desc())
    )
    return list(result.scalars().all())


async def get_group_members(db: AsyncSession, group_id: int) -> list[tuple[GroupMembership, User]]:
    """Members of one group with user info, in join order."""
    members = await get_members_for_groups(db, [group_id])
    return members.get(group_id, [])


async def get_members_for_groups(
    db: AsyncSession, group_ids: list[int]
) -> dict[int, list[tuple[GroupMembership, User]]]:
    """Members of several groups at once, keyed by group id."""
    if not group_ids:
        return {}
    result = await db.execute(
        select(GroupMembership, User)
        .join(User, GroupMembership.user_id == User.id)
        .where(GroupMembership.group_id.in_(group_ids))
        .order_by(GroupMembership.joined_at.asc(), GroupMembership.id.asc())
    )
    grouped: dict[int, list[tuple[GroupMembership, User]]] = defaultdict(list)
    for membership, user in result:
        grouped[membership.group_id].append((membership, user))
    return grouped


async def get_member_ids(db: AsyncSession, group_id: int) -> list[int]:
    """Current member user ids, in join order."""
    result = await db.execute(
        select(GroupMembership.user_id)
        .where(GroupMembership.group_id == group_id)
        .order_by(GroupMembership.joined_at.asc(), GroupMembership.id.asc())
    )
    return list(result.scalars().all())


async def get_users(db: AsyncSession, user_ids: set[int]) -> dict[int, User]:
    if not user_ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(user_ids)))
    return {user.id: user for user in result.scalars().all()}


async def count_wishlist_items(db: AsyncSession, group_ids: list[int]) -> dict[int, int]:
    if not group_ids:
        return {}
    result = await db.execute(
        select(WishlistItem.group_id, func.count(WishlistItem.id))
        .where(WishlistItem.group_id.in_(group_ids))
        .group_by(WishlistItem.group_id)
    )
    return {group_id: count for group_id, count in result}


async def join_group(db: AsyncSession, user_id: int, invite_code: str) -> GroupMembership:
    """
    Join a group using its invite code.

    Raises:
        InvalidInviteCode: No group uses this code.
        AlreadyMember: The user already belongs to the group.
    """
    code = normalize_invite_code(invite_code)
    result = await db.execute(select(Group).where(Group.invite_code == code))
    group = result.scalar_one_or_none()
    if group is None:
        raise InvalidInviteCode

    if await get_membership(db, group.id, user_id) is not None:
        raise AlreadyMember

    membership = GroupMembership(
        group_id=group.id,
        user_id=user_id,
        role=MemberRole.MEMBER.value,
        joined_at=datetime.now(timezone.utc),
    )
    db.add(membership)
    try:
        await db.flush()
    except IntegrityError as e:
        # A concurrent join for the same user won the unique (user, group) slot.
        await db.rollback()
        raise AlreadyMember from e

    logger.info("group_joined", group_id=group.id, user_id=user_id)
    return membership


async def update_assignment_mode(
    db: AsyncSession,
    group_id: int,
    caller_id: int,
    mode: AssignmentMode,
) -> Group:
    """Change the group's assignment mode (admin only)."""
    await require_admin(db, group_id, caller_id, action="change assignment mode")

    result = await db.execute(select(Group).where(Group.id == group_id))
    group = result.scalar_one()
    group.assignment_mode = mode.value
    group.updated_at = datetime.now(timezone.utc)
    await db.flush()

    logger.info("assignment_mode_changed", group_id=group_id, mode=mode.value, by=caller_id)
    return group
