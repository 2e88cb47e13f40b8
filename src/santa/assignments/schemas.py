"""Pydantic schemas for assignment endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from santa.groups.schemas import UserSummary


class CreateAssignmentRequest(BaseModel):
    giver_id: int
    receiver_id: int


class AssignmentResponse(BaseModel):
    id: int
    group_id: int
    giver: UserSummary | None = None  # Only shown to admins
    receiver: UserSummary
    created_at: datetime


class AssignmentListResponse(BaseModel):
    assignments: list[AssignmentResponse]
