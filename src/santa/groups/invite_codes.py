"""Invite code generation for groups.

Codes are uppercase alphanumeric (A-Z, 0-9), generated server-side from a
cryptographic random source. Lookups are case-insensitive because every code
is normalized to uppercase before it is compared.
"""

from __future__ import annotations

import secrets
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from santa.config import get_settings
from santa.db.models import Group

INVITE_CHARSET = string.ascii_uppercase + string.digits
MAX_ATTEMPTS = 10


def generate_invite_code(length: int | None = None) -> str:
    """Generate a cryptographically random invite code."""
    size = length or get_settings().invite_code_length
    return "".join(secrets.choice(INVITE_CHARSET) for _ in range(size))


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()


async def generate_unique_invite_code(db: AsyncSession) -> str:
    """Generate an invite code that no existing group uses."""
    for _ in range(MAX_ATTEMPTS):
        code = generate_invite_code()
        existing = await db.execute(select(Group.id).where(Group.invite_code == code))
        if existing.scalar_one_or_none() is None:
            return code
    msg = f"Failed to generate unique invite code after {MAX_ATTEMPTS} attempts"
    raise RuntimeError(msg)
