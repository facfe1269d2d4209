"""
Transactions API

The order view of calls: every record where an order was placed, plus
manual order entry.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_session
from api.security import get_current_user
from db.models import User
from db.repositories import calls as calls_repo
from schemas import CallOut, TransactionCreate
from workflow import actions

router = APIRouter()


@router.get("", response_model=list[CallOut])
async def list_transactions(
    agent_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    # Agents only ever see their own orders.
    if not user.is_admin:
        agent_id = user.id
    return await calls_repo.list_transactions(session, agent_id=agent_id)


@router.post("", response_model=CallOut, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: TransactionCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    data = body.model_dump(exclude={"new_order_sku", "new_price"})
    if data.get("agent_id") is None:
        data["agent_id"] = user.id
    return await actions.create_transaction(
        session, data, new_order_sku=body.new_order_sku, new_price=body.new_price
    )
