"""User endpoints: first-sign-in sync and profile."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from habitledger.auth.context import AuthContext
from habitledger.auth.dependencies import get_auth_context, get_token_claims
from habitledger.auth.service import sync_user
from habitledger.clock import Clock, get_clock
from habitledger.database import get_session
from habitledger.users.schemas import ProfileUpdateRequest, SyncRequest, UserResponse
from habitledger.users.service import update_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.post("/sync", response_model=UserResponse)
async def sync(
    body: SyncRequest,
    response: Response,
    claims: dict[str, Any] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> UserResponse:
    """Create or refresh the user record for the token's subject."""
    user, created = await sync_user(
        db,
        claims["sub"],
        clock,
        email=body.email or claims.get("email"),
        name=body.name or claims.get("name"),
    )
    await db.commit()
    if created:
        response.status_code = 201
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
async def get_me(ctx: AuthContext = Depends(get_auth_context)) -> UserResponse:
    return UserResponse.model_validate(ctx.user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    body: ProfileUpdateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> UserResponse:
    user = await update_profile(db, ctx.user, clock, name=body.name, timezone=body.timezone)
    await db.commit()
    return UserResponse.model_validate(user)
