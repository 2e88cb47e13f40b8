"""Wishlist items and the claim ledger.

Rules:
- Only group members add items, and only to their own wishlist
- Only the owner edits or deletes an item
- Members claim items they do not own; one claim per item, first writer wins
- Only the claimer releases a claim
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from santa.db.models import GiftClaim, User, WishlistItem
from santa.errors import AlreadyClaimed, Forbidden, NotFound, SelfClaim
from santa.groups.access import get_membership, require_member

logger = structlog.get_logger()

UPDATABLE_FIELDS = frozenset({"title", "url", "image_url", "notes", "priority"})


@dataclass
class ItemView:
    """An item with its owner and, if claimed, the claim and claimer."""

    item: WishlistItem
    owner: User
    claim: GiftClaim | None = None
    claimer: User | None = None


def _item_view_query():
    owner = aliased(User)
    claimer = aliased(User)
    return (
        select(WishlistItem, owner, GiftClaim, claimer)
        .join(owner, WishlistItem.user_id == owner.id)
        .outerjoin(GiftClaim, GiftClaim.item_id == WishlistItem.id)
        .outerjoin(claimer, GiftClaim.claimed_by_id == claimer.id)
    )


async def get_item(db: AsyncSession, item_id: int) -> WishlistItem:
    result = await db.execute(select(WishlistItem).where(WishlistItem.id == item_id))
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFound("Wishlist item not found")
    return item


async def get_claim(db: AsyncSession, item_id: int) -> GiftClaim | None:
    result = await db.execute(select(GiftClaim).where(GiftClaim.item_id == item_id))
    return result.scalar_one_or_none()


async def get_item_view(db: AsyncSession, item_id: int) -> ItemView:
    result = await db.execute(_item_view_query().where(WishlistItem.id == item_id))
    row = result.one_or_none()
    if row is None:
        raise NotFound("Wishlist item not found")
    return ItemView(*row)


async def _get_owned_item(db: AsyncSession, item_id: int, caller_id: int, action: str) -> WishlistItem:
    item = await get_item(db, item_id)
    if item.user_id != caller_id:
        raise Forbidden(f"You can only {action} your own items")
    return item


async def add_item(
    db: AsyncSession,
    group_id: int,
    owner_id: int,
    title: str,
    url: str | None = None,
    image_url: str | None = None,
    notes: str | None = None,
    priority: int = 0,
) -> WishlistItem:
    """Add an item to the caller's wishlist in a group they belong to."""
    await require_member(db, group_id, owner_id)

    now = datetime.now(timezone.utc)
    item = WishlistItem(
        user_id=owner_id,
        group_id=group_id,
        title=title,
        url=url,
        image_url=image_url,
        notes=notes,
        priority=priority,
        created_at=now,
        updated_at=now,
    )
    db.add(item)
    await db.flush()

    logger.info("wishlist_item_added", item_id=item.id, group_id=group_id, user_id=owner_id)
    return item


async def update_item(db: AsyncSession, item_id: int, caller_id: int, changes: dict[str, Any]) -> WishlistItem:
    """Apply a partial update. Keys absent from ``changes`` are left alone."""
    item = await _get_owned_item(db, item_id, caller_id, "edit")

    for field, value in changes.items():
        if field not in UPDATABLE_FIELDS:
            msg = f"Unknown field: {field}"
            raise ValueError(msg)
        setattr(item, field, value)
    item.updated_at = datetime.now(timezone.utc)
    await db.flush()

    logger.info("wishlist_item_updated", item_id=item_id, fields=sorted(changes))
    return item


async def delete_item(db: AsyncSession, item_id: int, caller_id: int) -> None:
    """Delete an item together with its claim."""
    item = await _get_owned_item(db, item_id, caller_id, "delete")

    await db.execute(delete(GiftClaim).where(GiftClaim.item_id == item_id))
    await db.delete(item)
    await db.flush()

    logger.info("wishlist_item_deleted", item_id=item_id, group_id=item.group_id)


async def list_for_group(db: AsyncSession, group_id: int, caller_id: int) -> list[ItemView]:
    """All items in the group, highest priority first, then newest first."""
    await require_member(db, group_id, caller_id)

    result = await db.execute(
        _item_view_query()
        .where(WishlistItem.group_id == group_id)
        .order_by(
            WishlistItem.priority.desc(),
            WishlistItem.created_at.desc(),
            WishlistItem.id.desc(),
        )
    )
    return [ItemView(*row) for row in result]


async def claim_item(db: AsyncSession, item_id: int, caller_id: int) -> GiftClaim:
    """
    Claim an item for the caller.

    Raises:
        NotFound: No such item.
        Forbidden: Caller is not in the item's group.
        SelfClaim: Caller owns the item.
        AlreadyClaimed: Someone holds a claim already, including when a
            concurrent claim wins the unique item_id slot first.
    """
    item = await get_item(db, item_id)
    if await get_membership(db, item.group_id, caller_id) is None:
        raise Forbidden("Not a member of this group")
    if item.user_id == caller_id:
        raise SelfClaim
    if await get_claim(db, item_id) is not None:
        raise AlreadyClaimed

    claim = GiftClaim(item_id=item_id, claimed_by_id=caller_id, claimed_at=datetime.now(timezone.utc))
    db.add(claim)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise AlreadyClaimed from e

    logger.info("item_claimed", item_id=item_id, group_id=item.group_id)
    return claim


async def unclaim_item(db: AsyncSession, item_id: int, caller_id: int) -> None:
    await get_item(db, item_id)
    claim = await get_claim(db, item_id)
    if claim is None:
        raise NotFound("Claim not found")
    if claim.claimed_by_id != caller_id:
        raise Forbidden("Only the claimer can release this claim")

    await db.delete(claim)
    await db.flush()
    logger.info("item_unclaimed", item_id=item_id)
