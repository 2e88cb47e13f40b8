"""Assignment storage on top of the pure engine.

Generate replaces a group's assignments in one transaction: the delete and
the inserts are flushed in the caller's session and committed together by
the router. Manual create upserts on (group, giver).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from santa.assignments.engine import build_cycle
from santa.config import get_settings
from santa.db.models import Assignment, User
from santa.errors import InsufficientMembers, NotAMember, NotFound, SelfAssignment
from santa.groups.access import get_membership, is_admin, require_admin, require_member
from santa.groups.service import get_member_ids

logger = structlog.get_logger()


@dataclass
class AssignmentView:
    """One assignment as seen by a particular caller. giver is None when hidden."""

    assignment: Assignment
    receiver: User
    giver: User | None = None


async def generate_assignments(
    db: AsyncSession,
    group_id: int,
    caller_id: int,
    rng: random.Random | None = None,
) -> list[Assignment]:
    """Replace every assignment of the group with a fresh random cycle."""
    await require_admin(db, group_id, caller_id, action="generate assignments")

    member_ids = await get_member_ids(db, group_id)
    if len(member_ids) < get_settings().min_group_size:
        raise InsufficientMembers
    pairs = build_cycle(member_ids, rng)

    now = datetime.now(timezone.utc)
    await db.execute(delete(Assignment).where(Assignment.group_id == group_id))
    assignments = [
        Assignment(group_id=group_id, giver_id=giver, receiver_id=receiver, created_at=now)
        for giver, receiver in pairs
    ]
    db.add_all(assignments)
    await db.flush()

    logger.info("assignments_generated", group_id=group_id, count=len(assignments), by=caller_id)
    return assignments


async def create_manual_assignment(
    db: AsyncSession,
    group_id: int,
    caller_id: int,
    giver_id: int,
    receiver_id: int,
) -> Assignment:
    """Assign giver -> receiver, replacing the giver's previous assignment."""
    await require_admin(db, group_id, caller_id, action="create assignments")

    if giver_id == receiver_id:
        raise SelfAssignment
    if await get_membership(db, group_id, giver_id) is None or await get_membership(db, group_id, receiver_id) is None:
        raise NotAMember

    result = await db.execute(
        select(Assignment).where(Assignment.group_id == group_id, Assignment.giver_id == giver_id)
    )
    assignment = result.scalar_one_or_none()
    if assignment is None:
        assignment = Assignment(
            group_id=group_id,
            giver_id=giver_id,
            receiver_id=receiver_id,
            created_at=datetime.now(timezone.utc),
        )
        db.add(assignment)
    else:
        assignment.receiver_id = receiver_id
    await db.flush()

    logger.info("assignment_set", group_id=group_id, assignment_id=assignment.id, by=caller_id)
    return assignment


async def delete_assignment(db: AsyncSession, group_id: int, caller_id: int, assignment_id: int) -> None:
    await require_admin(db, group_id, caller_id, action="delete assignments")

    result = await db.execute(
        select(Assignment).where(Assignment.id == assignment_id, Assignment.group_id == group_id)
    )
    assignment = result.scalar_one_or_none()
    if assignment is None:
        raise NotFound("Assignment not found")

    await db.delete(assignment)
    await db.flush()
    logger.info("assignment_deleted", group_id=group_id, assignment_id=assignment_id, by=caller_id)


async def list_assignments(db: AsyncSession, group_id: int, caller_id: int) -> list[AssignmentView]:
    """
    Assignments visible to the caller.

    Admins see every pairing with both sides. Everyone else sees at most
    their own assignment as giver, with the receiver only.
    """
    membership = await require_member(db, group_id, caller_id)

    giver = aliased(User)
    receiver = aliased(User)
    query = (
        select(Assignment, giver, receiver)
        .join(giver, Assignment.giver_id == giver.id)
        .join(receiver, Assignment.receiver_id == receiver.id)
        .where(Assignment.group_id == group_id)
        .order_by(Assignment.id.asc())
    )

    if is_admin(membership):
        result = await db.execute(query)
        return [AssignmentView(assignment=a, giver=g, receiver=r) for a, g, r in result]

    result = await db.execute(query.where(Assignment.giver_id == caller_id))
    return [AssignmentView(assignment=a, receiver=r) for a, _, r in result]
