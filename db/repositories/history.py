"""Call history repository: append-only audit trail."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import CallHistory, HistoryAction

logger = logging.getLogger(__name__)


async def add(
    session: AsyncSession,
    call_id: UUID,
    action: HistoryAction,
    agent_id: Optional[UUID] = None,
    notes: Optional[str] = None,
) -> CallHistory:
    """Append one history entry. Entries are never updated or deleted."""
    entry = CallHistory(
        call_id=call_id,
        agent_id=agent_id,
        action=HistoryAction(action).value,
        notes=notes,
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_for_call(session: AsyncSession, call_id: UUID) -> list[CallHistory]:
    """Return the call's history, newest first."""
    result = await session.execute(
        select(CallHistory)
        .where(CallHistory.call_id == call_id)
        .order_by(CallHistory.created_at.desc())
    )
    return list(result.scalars().all())
