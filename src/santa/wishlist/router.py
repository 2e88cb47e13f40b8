"""Wishlist endpoints.

Group-scoped reads and writes live under /api/v1/groups/{group_id}/wishlist;
item-level edits and claims under /api/v1/wishlist/{item_id}.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from santa.auth.dependencies import get_current_user
from santa.database import get_session
from santa.db.models import User
from santa.groups.router import user_summary
from santa.wishlist.schemas import (
    ClaimResponse,
    CreateItemRequest,
    RedactedClaimResponse,
    UpdateItemRequest,
    WishlistItemResponse,
    WishlistResponse,
)
from santa.wishlist.service import (
    ItemView,
    add_item,
    claim_item,
    delete_item,
    get_item_view,
    list_for_group,
    unclaim_item,
    update_item,
)

router = APIRouter(prefix="/api/v1", tags=["Wishlist"])


def build_item_response(view: ItemView, caller_id: int) -> WishlistItemResponse:
    """Project an item for one caller. The owner never sees who claimed it."""
    item = view.item
    claim: ClaimResponse | RedactedClaimResponse | None = None
    if view.claim is not None:
        if item.user_id == caller_id:
            claim = RedactedClaimResponse(item_id=item.id, claimed_at=view.claim.claimed_at)
        else:
            claim = ClaimResponse(
                item_id=item.id,
                claimed_at=view.claim.claimed_at,
                claimed_by=user_summary(view.claimer),
            )

    return WishlistItemResponse(
        id=item.id,
        group_id=item.group_id,
        owner=user_summary(view.owner),
        title=item.title,
        url=item.url,
        image_url=item.image_url,
        notes=item.notes,
        priority=item.priority,
        claimed=view.claim is not None,
        claim=claim,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


@router.post("/groups/{group_id}/wishlist", response_model=WishlistItemResponse, status_code=201)
async def add_item_endpoint(
    group_id: int,
    body: CreateItemRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Add an item to the caller's wishlist in this group."""
    item = await add_item(db, group_id, user.id, **body.model_dump())
    await db.commit()
    return build_item_response(ItemView(item=item, owner=user), user.id)


@router.get("/groups/{group_id}/wishlist", response_model=WishlistResponse)
async def list_wishlist_endpoint(
    group_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Every item in the group, with claims redacted on the caller's own items."""
    views = await list_for_group(db, group_id, user.id)
    return WishlistResponse(group_id=group_id, items=[build_item_response(v, user.id) for v in views])


@router.patch("/wishlist/{item_id}", response_model=WishlistItemResponse)
async def update_item_endpoint(
    item_id: int,
    body: UpdateItemRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Edit an item you own. Omitted fields are unchanged."""
    await update_item(db, item_id, user.id, body.model_dump(exclude_unset=True))
    await db.commit()
    return build_item_response(await get_item_view(db, item_id), user.id)


@router.delete("/wishlist/{item_id}", status_code=204)
async def delete_item_endpoint(
    item_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await delete_item(db, item_id, user.id)
    await db.commit()


@router.post("/wishlist/{item_id}/claim", response_model=ClaimResponse, status_code=201)
async def claim_item_endpoint(
    item_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Claim someone else's item."""
    claim = await claim_item(db, item_id, user.id)
    await db.commit()
    return ClaimResponse(item_id=item_id, claimed_at=claim.claimed_at, claimed_by=user_summary(user))


@router.delete("/wishlist/{item_id}/claim", status_code=204)
async def unclaim_item_endpoint(
    item_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Release a claim you hold."""
    await unclaim_item(db, item_id, user.id)
    await db.commit()
