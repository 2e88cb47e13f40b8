"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from santa.auth.jwt import verify_token
from santa.auth.service import get_user_by_id
from santa.database import get_session
from santa.db.models import User
from santa.errors import Unauthenticated

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Verify the bearer access token and return the caller.

    The returned user is the explicit caller identity handed to every
    service call; nothing downstream reads it from request state.
    """
    if credentials is None:
        raise Unauthenticated
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise Unauthenticated(str(e)) from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise Unauthenticated("User not found")
    return user
