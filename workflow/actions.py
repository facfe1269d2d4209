"""
Call actions

Each agent action loads the call, validates the transition, mutates the
record through the state machine and ledger, and appends one call history
entry. Validation and not-found errors are raised before anything changes.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Call, CallStatus, HistoryAction
from db.repositories import calls as calls_repo
from db.repositories import history as history_repo
from db.repositories import products as products_repo
from errors import ConflictError, NotFoundError, ValidationError
from workflow import ledger
from workflow.call_states import CallAction, can_transition, next_status
from workflow.timer import bounded_duration

logger = logging.getLogger(__name__)


async def load_call(session: AsyncSession, call_id: UUID) -> Call:
    """Return the call or raise NotFoundError."""
    call = await calls_repo.get(session, call_id)
    if call is None:
        raise NotFoundError("Call", call_id)
    return call


def _require(call: Call, action: CallAction) -> None:
    ok, reason = can_transition(CallStatus(call.status), action)
    if not ok:
        raise ValidationError(reason, ["status"])


def _require_in_progress(call: Call, what: str) -> None:
    if call.status != CallStatus.IN_PROGRESS.value:
        raise ValidationError(
            f"Cannot {what} on a call in status {call.status}; answer it first",
            ["status"],
        )


async def _require_agent(session: AsyncSession, agent_id: Optional[UUID]) -> None:
    if agent_id is not None and not await calls_repo.agent_exists(session, agent_id):
        raise NotFoundError("Agent", agent_id)


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------


async def create_call(session: AsyncSession, data: dict) -> Call:
    """Manual call intake. Raises ConflictError on a same-day duplicate phone."""
    await _require_agent(session, data.get("agent_id"))
    duplicate = await calls_repo.check_duplicate(session, data["phone"], data["date"])
    if duplicate is not None:
        logger.warning(
            "Rejected duplicate call for %s on %s (existing %s)",
            data["phone"], data["date"], duplicate.id,
        )
        raise ConflictError("Duplicate call found for this phone number and date")
    data = {**data, "status": CallStatus.NEW.value}
    data["current_price"] = ledger.to_money(data["current_price"])
    if data.get("shipping_fee") is not None:
        data["shipping_fee"] = ledger.to_money(data["shipping_fee"])
    call = await calls_repo.create(session, data)
    logger.info("Created call %s for %s", call.id, call.phone)
    return call


async def update_call(session: AsyncSession, call_id: UUID, data: dict) -> Call:
    """Edit intake fields. Moving a call onto an occupied phone/day is a conflict."""
    call = await load_call(session, call_id)
    if "phone" in data or "date" in data:
        phone = data.get("phone", call.phone)
        when = data.get("date", call.date)
        duplicate = await calls_repo.check_duplicate(session, phone, when)
        if duplicate is not None and duplicate.id != call.id:
            raise ConflictError("Duplicate call found for this phone number and date")
    updated = await calls_repo.update(session, call_id, data)
    if updated is None:
        raise NotFoundError("Call", call_id)
    return updated


async def assign_call(session: AsyncSession, call_id: UUID, agent_id: Optional[UUID]) -> Call:
    await _require_agent(session, agent_id)
    call = await calls_repo.assign_to_agent(session, call_id, agent_id)
    if call is None:
        raise NotFoundError("Call", call_id)
    return call


async def create_transaction(
    session: AsyncSession,
    data: dict,
    new_order_sku: Optional[str] = None,
    new_price: Optional[Decimal] = None,
) -> Call:
    """Record an order entered outside the call screen.

    With new_order_sku the order is booked as an upsell over the intake
    order; new_price falls back to the catalog price for that SKU.
    """
    await _require_agent(session, data.get("agent_id"))
    data = {
        **data,
        "current_price": ledger.to_money(data["current_price"]),
        "status": CallStatus.COMPLETED.value,
        "order_confirmed": True,
        "ordered_at": datetime.now(),
    }
    if data.get("shipping_fee") is not None:
        data["shipping_fee"] = ledger.to_money(data["shipping_fee"])
    price = None
    if new_order_sku:
        product = await products_repo.get_by_sku(session, new_order_sku)
        price = ledger.resolve_upsell_price(product, new_price)
    call = await calls_repo.create(session, data)
    if new_order_sku:
        ledger.apply_upsell(call, new_order_sku, price)
        await session.flush()
    logger.info("Recorded transaction %s (upsell=%s)", call.id, call.is_upsell)
    return call


# ---------------------------------------------------------------------------
# Call lifecycle
# ---------------------------------------------------------------------------


async def answer_call(
    session: AsyncSession,
    call_id: UUID,
    agent_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> Call:
    """Answered: start the call timer and take the call."""
    call = await load_call(session, call_id)
    _require(call, CallAction.ANSWER)
    now = now or datetime.now()

    call.status = next_status(CallStatus(call.status), CallAction.ANSWER).value
    call.call_started_at = now
    call.call_ended_at = None
    call.call_duration = None
    if agent_id is not None:
        call.agent_id = agent_id

    await history_repo.add(session, call.id, HistoryAction.STARTED, agent_id)
    await session.flush()
    logger.info("Call %s answered by %s", call.id, agent_id)
    return call


async def _close(
    session: AsyncSession,
    call: Call,
    action: CallAction,
    history_action: HistoryAction,
    agent_id: Optional[UUID],
    remarks: Optional[str],
    duration: Optional[int],
    now: Optional[datetime],
) -> Call:
    now = now or datetime.now()
    call.status = next_status(
        CallStatus(call.status), action, has_order=call.order_confirmed
    ).value
    call.call_ended_at = now
    call.call_duration = bounded_duration(duration, call.call_started_at, now)
    if remarks is not None:
        call.call_remarks = remarks

    await history_repo.add(session, call.id, history_action, agent_id, remarks)
    await session.flush()
    logger.info(
        "Call %s -> %s after %ss", call.id, call.status, call.call_duration
    )
    return call


async def end_call(
    session: AsyncSession,
    call_id: UUID,
    agent_id: Optional[UUID] = None,
    remarks: Optional[str] = None,
    duration: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Call:
    """End Call: completed when an order was placed, called otherwise."""
    call = await load_call(session, call_id)
    _require(call, CallAction.END)
    return await _close(
        session, call, CallAction.END, HistoryAction.ENDED, agent_id, remarks, duration, now
    )


async def mark_unattended(
    session: AsyncSession,
    call_id: UUID,
    agent_id: Optional[UUID] = None,
    remarks: Optional[str] = None,
    duration: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Call:
    """Customer did not pick up. Order fields are left as they are."""
    call = await load_call(session, call_id)
    _require(call, CallAction.MARK_UNATTENDED)
    return await _close(
        session, call, CallAction.MARK_UNATTENDED, HistoryAction.UNATTENDED,
        agent_id, remarks, duration, now,
    )


async def mark_callback(
    session: AsyncSession,
    call_id: UUID,
    agent_id: Optional[UUID] = None,
    remarks: Optional[str] = None,
    duration: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Call:
    """Customer asked to be called back. Order fields are left as they are."""
    call = await load_call(session, call_id)
    _require(call, CallAction.MARK_CALLBACK)
    return await _close(
        session, call, CallAction.MARK_CALLBACK, HistoryAction.CALLBACK,
        agent_id, remarks, duration, now,
    )


async def reset_call(
    session: AsyncSession,
    call_id: UUID,
    agent_id: Optional[UUID] = None,
    notes: Optional[str] = None,
) -> Call:
    """Undo: back to `new`, timestamps cleared, pre-upsell order restored."""
    call = await load_call(session, call_id)
    _require(call, CallAction.RESET)

    call.status = next_status(CallStatus(call.status), CallAction.RESET).value
    call.call_started_at = None
    call.call_ended_at = None
    call.call_duration = None
    ledger.clear_order(call)

    await history_repo.add(session, call.id, HistoryAction.RESET, agent_id, notes)
    await session.flush()
    logger.info("Call %s reset to new", call.id)
    return call


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


async def offer_upsell(
    session: AsyncSession,
    call_id: UUID,
    agent_id: Optional[UUID] = None,
    notes: Optional[str] = None,
) -> Call:
    call = await load_call(session, call_id)
    _require_in_progress(call, "offer an upsell")
    await history_repo.add(session, call.id, HistoryAction.UPSELL_OFFERED, agent_id, notes)
    await session.flush()
    return call


async def accept_upsell(
    session: AsyncSession,
    call_id: UUID,
    new_sku: str,
    manual_price: Optional[Decimal] = None,
    agent_id: Optional[UUID] = None,
    notes: Optional[str] = None,
) -> Call:
    """Book an upsell. Catalog price unless a manual price is given.

    The call stays in_progress so further orders can follow before End Call.
    """
    call = await load_call(session, call_id)
    _require_in_progress(call, "accept an upsell")
    product = await products_repo.get_by_sku(session, new_sku)
    price = ledger.resolve_upsell_price(product, manual_price)

    previous_sku = call.order_sku
    ledger.apply_upsell(call, new_sku, price)

    await history_repo.add(
        session,
        call.id,
        HistoryAction.UPSELL_ACCEPTED,
        agent_id,
        notes or f"{previous_sku} -> {call.order_sku} at {price} (revenue {call.revenue})",
    )
    await session.flush()
    logger.info("Call %s upsold to %s, revenue %s", call.id, call.order_sku, call.revenue)
    return call


async def decline_upsell(
    session: AsyncSession,
    call_id: UUID,
    agent_id: Optional[UUID] = None,
    remarks: Optional[str] = None,
    duration: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Call:
    """Customer keeps the current order: confirm it and complete the call."""
    call = await load_call(session, call_id)
    _require_in_progress(call, "decline an upsell")
    ledger.decline_upsell(call, now)
    await history_repo.add(session, call.id, HistoryAction.UPSELL_DECLINED, agent_id, remarks)
    return await _close(
        session, call, CallAction.END, HistoryAction.ENDED, agent_id, remarks, duration, now
    )


async def confirm_order(
    session: AsyncSession,
    call_id: UUID,
    agent_id: Optional[UUID] = None,
    notes: Optional[str] = None,
) -> Call:
    """The customer confirmed the original order; End Call will complete it."""
    call = await load_call(session, call_id)
    _require_in_progress(call, "confirm an order")
    ledger.confirm_order(call)
    await history_repo.add(session, call.id, HistoryAction.ORDER_CONFIRMED, agent_id, notes)
    await session.flush()
    return call
