"""Goal and milestone endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from habitledger.auth.context import AuthContext
from habitledger.auth.dependencies import get_auth_context
from habitledger.clock import Clock, get_clock
from habitledger.database import get_session
from habitledger.dependencies import get_redis_dep
from habitledger.goals import service
from habitledger.goals.schemas import (
    CreatedResponse,
    GoalCreateRequest,
    GoalResponse,
    MilestoneCreateRequest,
    MilestoneResponse,
    MilestoneUpdateRequest,
)

router = APIRouter(prefix="/api/v1", tags=["Goals"])


@router.post("/goals", response_model=CreatedResponse, status_code=201)
async def create_goal(
    body: GoalCreateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> CreatedResponse:
    """Create a goal (plan quota enforced)."""
    goal = await service.create_goal(db, ctx, body.model_dump(), clock)
    await db.commit()
    return CreatedResponse(id=goal.id)


@router.get("/goals", response_model=list[GoalResponse])
async def list_goals(
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> list[GoalResponse]:
    goals = await service.list_goals(db, ctx)
    return [GoalResponse.model_validate(g) for g in goals]


@router.get("/goals/{goal_id}", response_model=GoalResponse)
async def get_goal(
    goal_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> GoalResponse:
    goal = await service.get_owned_goal(db, ctx, goal_id)
    return GoalResponse.model_validate(goal)


@router.post("/goals/{goal_id}/milestones", response_model=CreatedResponse, status_code=201)
async def create_milestone(
    goal_id: int,
    body: MilestoneCreateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> CreatedResponse:
    milestone = await service.create_milestone(db, ctx, goal_id, body.model_dump(), clock)
    await db.commit()
    return CreatedResponse(id=milestone.id)


@router.get("/goals/{goal_id}/milestones", response_model=list[MilestoneResponse])
async def list_milestones(
    goal_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> list[MilestoneResponse]:
    """Milestones of a goal in sequence order."""
    milestones = await service.list_milestones(db, ctx, goal_id)
    return [MilestoneResponse.model_validate(m) for m in milestones]


@router.patch("/milestones/{milestone_id}", response_model=MilestoneResponse)
async def update_milestone(
    milestone_id: int,
    body: MilestoneUpdateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    clock: Clock = Depends(get_clock),
) -> MilestoneResponse:
    """Update a milestone; completing it updates goal progress and grants XP."""
    milestone = await service.update_milestone(
        db, redis, ctx, milestone_id, body.model_dump(exclude_unset=True), clock
    )
    await db.commit()
    return MilestoneResponse.model_validate(milestone)
