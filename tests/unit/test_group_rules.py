"""Unit tests for the group registry and the access-control layer."""

import pytest

from santa.db.models import AssignmentMode, MemberRole
from santa.errors import AlreadyMember, Forbidden, InvalidInviteCode, NotFound
from santa.groups.access import get_membership, is_admin, require_admin, require_member
from santa.groups.service import (
    create_group,
    get_group_members,
    get_member_ids,
    join_group,
    list_groups,
    update_assignment_mode,
)


class TestCreateGroup:
    async def test_creator_becomes_admin(self, db_session, make_user):
        owner = await make_user()
        group = await create_group(db_session, owner.id, "Family", "Christmas 2026")

        membership = await get_membership(db_session, group.id, owner.id)
        assert membership is not None
        assert membership.role == MemberRole.ADMIN.value
        assert is_admin(membership)

    async def test_defaults(self, db_session, make_user):
        owner = await make_user()
        group = await create_group(db_session, owner.id, "Family")

        assert group.assignment_mode == AssignmentMode.RANDOM.value
        assert group.created_by_id == owner.id
        assert len(group.invite_code) == 10

    async def test_invite_codes_differ(self, db_session, make_user):
        owner = await make_user()
        a = await create_group(db_session, owner.id, "A")
        b = await create_group(db_session, owner.id, "B")
        assert a.invite_code != b.invite_code


class TestJoinGroup:
    async def test_join_adds_member(self, db_session, make_user):
        owner = await make_user()
        guest = await make_user()
        group = await create_group(db_session, owner.id, "Family")

        membership = await join_group(db_session, guest.id, group.invite_code)

        assert membership.role == MemberRole.MEMBER.value
        assert await get_member_ids(db_session, group.id) == [owner.id, guest.id]

    async def test_code_is_case_insensitive(self, db_session, make_user):
        owner = await make_user()
        guest = await make_user()
        group = await create_group(db_session, owner.id, "Family")

        membership = await join_group(db_session, guest.id, f" {group.invite_code.lower()} ")
        assert membership.group_id == group.id

    async def test_invalid_code(self, db_session, make_user):
        guest = await make_user()
        with pytest.raises(InvalidInviteCode):
            await join_group(db_session, guest.id, "NOSUCHCODE")

    async def test_second_join_is_rejected(self, db_session, make_user):
        owner = await make_user()
        guest = await make_user()
        group = await create_group(db_session, owner.id, "Family")

        await join_group(db_session, guest.id, group.invite_code)
        with pytest.raises(AlreadyMember):
            await join_group(db_session, guest.id, group.invite_code)

    async def test_creator_cannot_rejoin(self, db_session, make_user):
        owner = await make_user()
        group = await create_group(db_session, owner.id, "Family")
        with pytest.raises(AlreadyMember):
            await join_group(db_session, owner.id, group.invite_code)


class TestListGroups:
    async def test_only_member_groups_listed(self, db_session, make_user):
        alice = await make_user()
        bob = await make_user()
        mine = await create_group(db_session, alice.id, "Mine")
        await create_group(db_session, bob.id, "Theirs")

        groups = await list_groups(db_session, alice.id)
        assert [g.id for g in groups] == [mine.id]

    async def test_members_include_user_info(self, db_session, make_user):
        alice = await make_user(name="Alice")
        bob = await make_user(name="Bob")
        group = await create_group(db_session, alice.id, "Family")
        await join_group(db_session, bob.id, group.invite_code)

        members = await get_group_members(db_session, group.id)
        assert [(m.role, u.name) for m, u in members] == [("ADMIN", "Alice"), ("MEMBER", "Bob")]


class TestAccessControl:
    async def test_unknown_group_is_not_found(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(NotFound):
            await require_member(db_session, 9999, user.id)

    async def test_outsider_is_forbidden(self, db_session, make_user):
        owner = await make_user()
        outsider = await make_user()
        group = await create_group(db_session, owner.id, "Family")
        with pytest.raises(Forbidden):
            await require_member(db_session, group.id, outsider.id)

    async def test_member_is_not_admin(self, db_session, make_user):
        owner = await make_user()
        guest = await make_user()
        group = await create_group(db_session, owner.id, "Family")
        await join_group(db_session, guest.id, group.invite_code)

        assert (await require_member(db_session, group.id, guest.id)).user_id == guest.id
        with pytest.raises(Forbidden, match="Only admins"):
            await require_admin(db_session, group.id, guest.id)

    async def test_is_admin_handles_missing_membership(self):
        assert is_admin(None) is False


class TestAssignmentMode:
    async def test_admin_changes_mode(self, db_session, make_user):
        owner = await make_user()
        group = await create_group(db_session, owner.id, "Family")

        updated = await update_assignment_mode(db_session, group.id, owner.id, AssignmentMode.MANUAL)
        assert updated.assignment_mode == "MANUAL"

    async def test_member_cannot_change_mode(self, db_session, make_user):
        owner = await make_user()
        guest = await make_user()
        group = await create_group(db_session, owner.id, "Family")
        await join_group(db_session, guest.id, group.invite_code)

        with pytest.raises(Forbidden):
            await update_assignment_mode(db_session, group.id, guest.id, AssignmentMode.OPEN)
