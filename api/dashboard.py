"""
Dashboard API

KPI block and agent leaderboard.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_session
from api.security import get_current_user
from db.models import User
from db.repositories import analytics
from schemas import AgentPerformance, DashboardStats

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    day: Optional[date] = Query(None),
    agent_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Today's numbers (or `day`). Agents are always scoped to themselves."""
    if not user.is_admin:
        agent_id = user.id
    return await analytics.get_dashboard_stats(session, day=day, agent_id=agent_id)


@router.get(
    "/agent-performance",
    response_model=list[AgentPerformance],
    dependencies=[Depends(get_current_user)],
)
async def agent_performance(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    session: AsyncSession = Depends(get_session),
):
    return await analytics.get_agent_performance(session, date_from=date_from, date_to=date_to)
