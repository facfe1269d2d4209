"""Analytics repository: dashboard KPIs and the agent leaderboard.

Every figure is a grouped aggregate computed by the database. Currency stays
Decimal end to end; percentages and minutes are rounded half-up to 2 places.
"""
import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Call, User, UserRole
from db.repositories.calls import day_bounds
from schemas.dashboard import (
    AgentPerformance,
    AgentSummary,
    DashboardStats,
    DayRevenue,
    StatusCount,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
REVENUE_WINDOW_DAYS = 7


def round_pct(value) -> Decimal:
    """Round half-up to 2 decimal places."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def conversion_rate(upsells: int, calls: int) -> Decimal:
    """upsells / calls * 100, or 0.00 when there were no calls."""
    if not calls:
        return round_pct(0)
    return round_pct(Decimal(upsells) * 100 / Decimal(calls))


def _money(value) -> Decimal:
    return round_pct(value or 0)


def _as_date(value) -> date:
    # SQLite's DATE() yields 'YYYY-MM-DD' text, PostgreSQL a date
    if isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(value, datetime):
        return value.date()
    return value


def _duration_seconds(dialect_name: str):
    """SQL expression for call_ended_at - call_started_at in seconds."""
    if dialect_name == "sqlite":
        return (
            func.julianday(Call.call_ended_at) - func.julianday(Call.call_started_at)
        ) * 86400.0
    return func.extract("epoch", Call.call_ended_at - Call.call_started_at)


async def get_dashboard_stats(
    session: AsyncSession,
    day: Optional[date] = None,
    agent_id: Optional[UUID] = None,
) -> DashboardStats:
    """Compute the KPI block for one local calendar day.

    Calls are counted by their call date; upsells and revenue by the day the
    order was placed (ordered_at). revenue_by_day covers the 7 days ending
    on `day`, with zero-filled gaps.
    """
    day = day or date.today()
    start, end = day_bounds(day)
    agent_scope = [Call.agent_id == agent_id] if agent_id is not None else []
    call_scope = [Call.date >= start, Call.date < end, *agent_scope]
    order_scope = [Call.ordered_at >= start, Call.ordered_at < end, *agent_scope]

    total_calls = (
        await session.execute(select(func.count(Call.id)).where(*call_scope))
    ).scalar_one()

    upsells = (
        await session.execute(
            select(func.count(Call.id)).where(*order_scope, Call.is_upsell == True)  # noqa: E712
        )
    ).scalar_one()

    revenue = (
        await session.execute(select(func.sum(Call.revenue)).where(*order_scope))
    ).scalar_one()

    status_rows = (
        await session.execute(
            select(Call.status, func.count(Call.id))
            .where(*call_scope)
            .group_by(Call.status)
            .order_by(Call.status)
        )
    ).all()

    window_start = start - timedelta(days=REVENUE_WINDOW_DAYS - 1)
    day_col = func.date(Call.ordered_at)
    revenue_rows = (
        await session.execute(
            select(day_col.label("day"), func.sum(Call.revenue))
            .where(Call.ordered_at >= window_start, Call.ordered_at < end, *agent_scope)
            .group_by(day_col)
            .order_by(day_col)
        )
    ).all()
    by_day = {_as_date(d): _money(total) for d, total in revenue_rows}
    revenue_by_day = [
        DayRevenue(date=d, revenue=by_day.get(d, _money(0)))
        for d in (window_start.date() + timedelta(days=i) for i in range(REVENUE_WINDOW_DAYS))
    ]

    stats = DashboardStats(
        day=day,
        total_calls=total_calls or 0,
        successful_upsells=upsells or 0,
        revenue=_money(revenue),
        conversion_rate=conversion_rate(upsells or 0, total_calls or 0),
        calls_by_status=[StatusCount(status=s, count=c) for s, c in status_rows],
        revenue_by_day=revenue_by_day,
    )
    logger.debug("Dashboard stats for %s (agent=%s): %s", day, agent_id, stats)
    return stats


async def get_agent_performance(
    session: AsyncSession,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> list[AgentPerformance]:
    """Per-agent leaderboard for active agents.

    Ranked by transactions (calls with a placed order), then calls handled,
    then username.

    Agents without calls are included with zeros. date_from/date_to restrict
    the calls counted (by call date) without dropping any agent.
    """
    join_on = [Call.agent_id == User.id]
    if date_from is not None:
        join_on.append(Call.date >= date_from)
    if date_to is not None:
        join_on.append(Call.date <= date_to)

    handled = func.count(Call.id)
    transactions = func.count(case((Call.order_confirmed == True, 1)))  # noqa: E712
    upsells = func.count(case((Call.is_upsell == True, 1)))  # noqa: E712
    duration = _duration_seconds(session.get_bind().dialect.name)

    stmt = (
        select(
            User.id,
            User.username,
            User.role,
            handled.label("calls_handled"),
            transactions.label("transactions"),
            upsells.label("upsells_closed"),
            func.sum(Call.revenue).label("revenue"),
            func.avg(duration).label("avg_seconds"),
        )
        .select_from(User)
        .outerjoin(Call, and_(*join_on))
        .where(User.role == UserRole.AGENT.value, User.is_active == True)  # noqa: E712
        .group_by(User.id, User.username, User.role)
        .order_by(transactions.desc(), handled.desc(), User.username)
    )
    rows = (await session.execute(stmt)).all()

    performance = []
    for row in rows:
        avg_minutes = Decimal(str(row.avg_seconds)) / 60 if row.avg_seconds is not None else 0
        performance.append(AgentPerformance(
            agent=AgentSummary(id=row.id, username=row.username, role=row.role),
            calls_handled=row.calls_handled or 0,
            transactions=row.transactions or 0,
            upsells_closed=row.upsells_closed or 0,
            conversion_rate=conversion_rate(row.upsells_closed or 0, row.calls_handled or 0),
            revenue=_money(row.revenue),
            average_handling_time=round_pct(avg_minutes),
        ))
    return performance
