"""Pydantic schemas for wishlist and claim endpoints.

The claim payload has two shapes. ``ClaimResponse`` names the claimer and is
only built for items the caller does not own. ``RedactedClaimResponse`` is
built for the caller's own items and has no claimer field at all.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

from santa.groups.schemas import UserSummary

_http_url = TypeAdapter(HttpUrl)


def _check_url(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    try:
        return str(_http_url.validate_python(v))
    except ValidationError as e:
        msg = "Must be an absolute http(s) URL"
        raise ValueError(msg) from e


def _check_title(v: str | None) -> str:
    if v is None:
        msg = "Title cannot be null"
        raise ValueError(msg)
    v = v.strip()
    if not v:
        msg = "Title cannot be blank"
        raise ValueError(msg)
    return v


class CreateItemRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    url: str | None = Field(None, max_length=2048)
    image_url: str | None = Field(None, max_length=2048)
    notes: str | None = Field(None, max_length=2000)
    priority: int = 0

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _check_title(v)

    @field_validator("url", "image_url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        return _check_url(v)


class UpdateItemRequest(BaseModel):
    """Partial update. Only fields present in the body are applied."""

    title: str | None = Field(None, min_length=1, max_length=200)
    url: str | None = Field(None, max_length=2048)
    image_url: str | None = Field(None, max_length=2048)
    notes: str | None = Field(None, max_length=2000)
    priority: int | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str:
        return _check_title(v)

    @field_validator("url", "image_url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        return _check_url(v)

    @field_validator("priority")
    @classmethod
    def priority_not_null(cls, v: int | None) -> int:
        if v is None:
            msg = "Priority cannot be null"
            raise ValueError(msg)
        return v


class ClaimResponse(BaseModel):
    item_id: int
    is_claimed: bool = True
    claimed_at: datetime
    claimed_by: UserSummary


class RedactedClaimResponse(BaseModel):
    """Claim as seen by the item's owner: no claimer identity."""

    model_config = ConfigDict(extra="forbid")

    item_id: int
    is_claimed: bool = True
    claimed_at: datetime


class WishlistItemResponse(BaseModel):
    id: int
    group_id: int
    owner: UserSummary
    title: str
    url: str | None = None
    image_url: str | None = None
    notes: str | None = None
    priority: int
    claimed: bool
    claim: ClaimResponse | RedactedClaimResponse | None = None
    created_at: datetime
    updated_at: datetime


class WishlistResponse(BaseModel):
    group_id: int
    items: list[WishlistItemResponse]
