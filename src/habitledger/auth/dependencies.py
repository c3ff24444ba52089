"""FastAPI authentication dependencies."""

from __future__ import annotations

from typing import Any

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from habitledger.auth.context import AuthContext
from habitledger.auth.jwt import verify_token
from habitledger.auth.service import get_user_by_subject
from habitledger.database import get_session
from habitledger.errors import AuthenticationError

_bearer = HTTPBearer(auto_error=False)


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> dict[str, Any]:
    """Verify the bearer token and return its claims. Raises 401 on failure."""
    if credentials is None:
        raise AuthenticationError
    try:
        return verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(str(e)) from e


async def get_auth_context(
    claims: dict[str, Any] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_session),
) -> AuthContext:
    """Resolve the token subject to a known user."""
    user = await get_user_by_subject(db, claims["sub"])
    if user is None:
        raise AuthenticationError("User not found. Complete signup first")
    return AuthContext(user=user)
