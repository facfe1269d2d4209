"""Call repository: intake, filtering, assignment and the duplicate guard."""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Call, User

logger = logging.getLogger(__name__)


@dataclass
class CallFilters:
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    status: Optional[str] = None
    agent_id: Optional[UUID] = None
    call_type: Optional[str] = None
    is_upsell: Optional[bool] = None
    search: Optional[str] = None


def day_bounds(when: Union[date, datetime]) -> tuple[datetime, datetime]:
    """Local midnight of `when` and the following midnight (half-open window)."""
    day = when.date() if isinstance(when, datetime) else when
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


async def list_calls(
    session: AsyncSession, filters: Optional[CallFilters] = None
) -> list[Call]:
    """Return calls matching the filters, newest call date first."""
    filters = filters or CallFilters()
    conditions = []
    if filters.date_from is not None:
        conditions.append(Call.date >= filters.date_from)
    if filters.date_to is not None:
        conditions.append(Call.date <= filters.date_to)
    if filters.status:
        conditions.append(Call.status == filters.status)
    if filters.agent_id is not None:
        conditions.append(Call.agent_id == filters.agent_id)
    if filters.call_type:
        conditions.append(Call.call_type == filters.call_type)
    if filters.is_upsell is not None:
        conditions.append(Call.is_upsell == filters.is_upsell)
    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        conditions.append(
            or_(Call.customer_name.ilike(pattern), Call.phone.ilike(pattern))
        )

    stmt = select(Call)
    if conditions:
        stmt = stmt.where(and_(*conditions))
    result = await session.execute(stmt.order_by(Call.date.desc(), Call.created_at.desc()))
    return list(result.scalars().all())


async def get(session: AsyncSession, call_id: UUID) -> Optional[Call]:
    """Return the Call with this id, or None."""
    return await session.get(Call, call_id)


async def create(session: AsyncSession, data: dict) -> Call:
    """Insert a call record in status `new` unless data says otherwise.

    data dict keys: date, customer_name, phone, awb, order_sku, quantity,
    current_price, shipping_fee, address, call_type, agent_id, status
    """
    call = Call(**data)
    session.add(call)
    await session.flush()
    return call


async def update(session: AsyncSession, call_id: UUID, data: dict) -> Optional[Call]:
    """Apply a partial update. Returns None when the call does not exist.

    Last write wins: no version check is made against concurrent edits.
    """
    if not data:
        return await get(session, call_id)
    result = await session.execute(
        sa_update(Call)
        .where(Call.id == call_id)
        .values(**data)
        .returning(Call),
        execution_options={"populate_existing": True},
    )
    await session.flush()
    return result.scalar_one_or_none()


async def assign_to_agent(
    session: AsyncSession, call_id: UUID, agent_id: Optional[UUID]
) -> Optional[Call]:
    """Point a call at an agent (or unassign with None)."""
    call = await update(session, call_id, {"agent_id": agent_id})
    if call is not None:
        logger.info("Assigned call %s to agent %s", call_id, agent_id)
    return call


async def check_duplicate(
    session: AsyncSession, phone: str, when: Union[date, datetime]
) -> Optional[Call]:
    """Return an existing call for this exact phone on the same calendar day, or None."""
    start, end = day_bounds(when)
    result = await session.execute(
        select(Call)
        .where(Call.phone == phone)
        .where(Call.date >= start)
        .where(Call.date < end)
        .order_by(Call.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_transactions(
    session: AsyncSession, agent_id: Optional[UUID] = None
) -> list[Call]:
    """Return calls on which an order was placed, most recently updated first."""
    stmt = select(Call).where(Call.order_confirmed == True)  # noqa: E712
    if agent_id is not None:
        stmt = stmt.where(Call.agent_id == agent_id)
    result = await session.execute(stmt.order_by(Call.updated_at.desc()))
    return list(result.scalars().all())


async def agent_exists(session: AsyncSession, agent_id: UUID) -> bool:
    result = await session.execute(select(User.id).where(User.id == agent_id))
    return result.scalar_one_or_none() is not None
