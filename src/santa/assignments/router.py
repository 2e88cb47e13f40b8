"""Assignment endpoints under /api/v1/groups/{group_id}/assignments."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from santa.assignments.schemas import (
    AssignmentListResponse,
    AssignmentResponse,
    CreateAssignmentRequest,
)
from santa.assignments.service import (
    AssignmentView,
    create_manual_assignment,
    delete_assignment,
    generate_assignments,
    list_assignments,
)
from santa.auth.dependencies import get_current_user
from santa.database import get_session
from santa.db.models import User
from santa.groups.router import user_summary

router = APIRouter(prefix="/api/v1/groups/{group_id}/assignments", tags=["Assignments"])


def _build_assignment_response(view: AssignmentView) -> AssignmentResponse:
    return AssignmentResponse(
        id=view.assignment.id,
        group_id=view.assignment.group_id,
        giver=user_summary(view.giver) if view.giver else None,
        receiver=user_summary(view.receiver),
        created_at=view.assignment.created_at,
    )


@router.post("/generate", response_model=AssignmentListResponse)
async def generate_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Replace all assignments with a new random cycle and return every pair (admin only)."""
    await generate_assignments(db, group_id, user.id)
    await db.commit()

    # caller is the admin, so this is the full set with both sides
    views = await list_assignments(db, group_id, user.id)
    return AssignmentListResponse(assignments=[_build_assignment_response(v) for v in views])


@router.post("", response_model=AssignmentResponse, status_code=201)
async def create_endpoint(
    group_id: int,
    body: CreateAssignmentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Set one giver -> receiver pairing by hand (admin only)."""
    assignment = await create_manual_assignment(db, group_id, user.id, body.giver_id, body.receiver_id)
    await db.commit()

    giver = await db.get(User, assignment.giver_id)
    receiver = await db.get(User, assignment.receiver_id)
    return _build_assignment_response(AssignmentView(assignment=assignment, giver=giver, receiver=receiver))


@router.get("", response_model=AssignmentListResponse)
async def list_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Admins get every pairing; members get only their own receiver."""
    views = await list_assignments(db, group_id, user.id)
    return AssignmentListResponse(assignments=[_build_assignment_response(v) for v in views])


@router.delete("/{assignment_id}", status_code=204)
async def delete_endpoint(
    group_id: int,
    assignment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Remove one assignment (admin only)."""
    await delete_assignment(db, group_id, user.id, assignment_id)
    await db.commit()
