"""Pydantic schemas for group endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from santa.db.models import AssignmentMode


class CreateGroupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Group name cannot be blank"
            raise ValueError(msg)
        return v


class UpdateAssignmentModeRequest(BaseModel):
    mode: AssignmentMode


class UserSummary(BaseModel):
    id: int
    name: str
    email: str


class MemberResponse(BaseModel):
    user: UserSummary
    role: str
    joined_at: datetime


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    invite_code: str
    assignment_mode: AssignmentMode
    created_by: int
    creator: UserSummary | None = None
    members: list[MemberResponse] = []
    created_at: datetime
    wishlist_item_count: int | None = None  # Only filled in list views


class GroupListResponse(BaseModel):
    groups: list[GroupResponse]
    total: int


class JoinGroupResponse(BaseModel):
    group_id: int
    role: str
    joined_at: datetime
