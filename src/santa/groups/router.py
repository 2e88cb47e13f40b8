"""Group endpoints: create, list, detail, join and assignment mode."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from santa.auth.dependencies import get_current_user
from santa.database import get_session
from santa.db.models import Group, GroupMembership, User
from santa.groups.access import require_member
from santa.groups.schemas import (
    CreateGroupRequest,
    GroupListResponse,
    GroupResponse,
    JoinGroupResponse,
    MemberResponse,
    UpdateAssignmentModeRequest,
    UserSummary,
)
from santa.groups.service import (
    count_wishlist_items,
    create_group,
    get_group_members,
    get_members_for_groups,
    get_users,
    join_group,
    list_groups,
    update_assignment_mode,
)

router = APIRouter(prefix="/api/v1", tags=["Groups"])


# ── Helpers ──


def user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, email=user.email)


def _build_group_response(
    group: Group,
    members: list[tuple[GroupMembership, User]],
    creator: User | None = None,
    item_count: int | None = None,
) -> GroupResponse:
    """Build a GroupResponse from the ORM group and its (membership, user) rows."""
    if creator is None:
        creator = next((u for _, u in members if u.id == group.created_by_id), None)

    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        invite_code=group.invite_code,
        assignment_mode=group.assignment_mode,
        created_by=group.created_by_id,
        creator=user_summary(creator) if creator else None,
        members=[
            MemberResponse(user=user_summary(user), role=m.role, joined_at=m.joined_at)
            for m, user in members
        ],
        created_at=group.created_at,
        wishlist_item_count=item_count,
    )


# ── Endpoints ──


@router.post("/groups", response_model=GroupResponse, status_code=201)
async def create_group_endpoint(
    body: CreateGroupRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Create a group. The creator becomes its admin."""
    group = await create_group(db, user.id, body.name, body.description)
    await db.commit()

    members = await get_group_members(db, group.id)
    return _build_group_response(group, members, creator=user)


@router.get("/groups", response_model=GroupListResponse)
async def list_groups_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """List the caller's groups, newest first."""
    groups = await list_groups(db, user.id)
    group_ids = [g.id for g in groups]
    members = await get_members_for_groups(db, group_ids)
    creators = await get_users(db, {g.created_by_id for g in groups})
    counts = await count_wishlist_items(db, group_ids)

    items = [
        _build_group_response(
            g,
            members.get(g.id, []),
            creator=creators.get(g.created_by_id),
            item_count=counts.get(g.id, 0),
        )
        for g in groups
    ]
    return GroupListResponse(groups=items, total=len(items))


@router.get("/groups/{group_id}", response_model=GroupResponse)
async def get_group_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Group detail with members. Membership required."""
    await require_member(db, group_id, user.id)
    group = await db.get(Group, group_id)
    members = await get_group_members(db, group_id)
    return _build_group_response(group, members)


@router.post("/groups/{invite_code}/join", response_model=JoinGroupResponse, status_code=201)
async def join_group_endpoint(
    invite_code: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Join a group by its invite code."""
    membership = await join_group(db, user.id, invite_code)
    await db.commit()
    return JoinGroupResponse(
        group_id=membership.group_id,
        role=membership.role,
        joined_at=membership.joined_at,
    )


@router.patch("/groups/{group_id}/assignment-mode", response_model=GroupResponse)
async def update_assignment_mode_endpoint(
    group_id: int,
    body: UpdateAssignmentModeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Change how assignments are made in this group (admin only)."""
    group = await update_assignment_mode(db, group_id, user.id, body.mode)
    await db.commit()

    members = await get_group_members(db, group_id)
    return _build_group_response(group, members)
