"""
Calls API

Call intake, the agent's call screen actions and the admin CSV import.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

import settings
from api.deps import get_session
from api.security import get_current_user, require_admin
from db.models import User
from db.repositories import calls as calls_repo
from db.repositories import history as history_repo
from db.repositories import users as users_repo
from errors import NotFoundError, ValidationError
from schemas import (
    AssignRequest,
    CallActionRequest,
    CallCreate,
    CallHistoryOut,
    CallOut,
    CallUpdate,
    ImportSummaryOut,
    NoteRequest,
    UpsellRequest,
)
from schemas.calls import CallStatusName, CallTypeName
from workflow import actions, importer
from workflow.timer import to_local_naive

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------


@router.get("", response_model=list[CallOut], dependencies=[Depends(get_current_user)])
async def list_calls(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    call_status: Optional[CallStatusName] = Query(None, alias="status"),
    agent_id: Optional[UUID] = Query(None),
    call_type: Optional[CallTypeName] = Query(None),
    is_upsell: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_session),
):
    filters = calls_repo.CallFilters(
        date_from=to_local_naive(date_from) if date_from else None,
        date_to=to_local_naive(date_to) if date_to else None,
        status=call_status,
        agent_id=agent_id,
        call_type=call_type,
        is_upsell=is_upsell,
        search=search,
    )
    return await calls_repo.list_calls(session, filters)


@router.post(
    "",
    response_model=CallOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_user)],
)
async def create_call(body: CallCreate, session: AsyncSession = Depends(get_session)):
    return await actions.create_call(session, body.model_dump())


@router.post(
    "/import",
    response_model=ImportSummaryOut,
    dependencies=[Depends(require_admin)],
)
async def import_calls(
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_session),
):
    """Bulk import a CSV of calls, assigning active agents round-robin."""
    raw = await file.read(settings.IMPORT_MAX_BYTES + 1)
    if len(raw) > settings.IMPORT_MAX_BYTES:
        raise ValidationError(
            f"File exceeds the {settings.IMPORT_MAX_BYTES} byte upload limit", ["file"]
        )
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("File must be UTF-8 encoded CSV", ["file"])

    agents = await users_repo.list_agents(session, active_only=True)
    summary = await importer.import_csv(session, text, agents)
    logger.info("CSV import %s: %s", file.filename, summary.to_dict())
    return summary.to_dict()


@router.get("/{call_id}", response_model=CallOut, dependencies=[Depends(get_current_user)])
async def get_call(call_id: UUID, session: AsyncSession = Depends(get_session)):
    call = await calls_repo.get(session, call_id)
    if call is None:
        raise NotFoundError("Call", call_id)
    return call


@router.put("/{call_id}", response_model=CallOut, dependencies=[Depends(get_current_user)])
async def update_call(
    call_id: UUID,
    body: CallUpdate,
    session: AsyncSession = Depends(get_session),
):
    return await actions.update_call(session, call_id, body.model_dump(exclude_unset=True))


@router.post("/{call_id}/assign", response_model=CallOut, dependencies=[Depends(require_admin)])
async def assign_call(
    call_id: UUID,
    body: AssignRequest,
    session: AsyncSession = Depends(get_session),
):
    return await actions.assign_call(session, call_id, body.agent_id)


@router.get(
    "/{call_id}/history",
    response_model=list[CallHistoryOut],
    dependencies=[Depends(get_current_user)],
)
async def call_history(call_id: UUID, session: AsyncSession = Depends(get_session)):
    await actions.load_call(session, call_id)
    return await history_repo.list_for_call(session, call_id)


# ---------------------------------------------------------------------------
# Call screen actions
# ---------------------------------------------------------------------------


@router.post("/{call_id}/answer", response_model=CallOut)
async def answer_call(
    call_id: UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await actions.answer_call(session, call_id, agent_id=user.id)


@router.post("/{call_id}/end", response_model=CallOut)
async def end_call(
    call_id: UUID,
    body: Optional[CallActionRequest] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    body = body or CallActionRequest()
    return await actions.end_call(
        session, call_id, agent_id=user.id, remarks=body.remarks, duration=body.duration
    )


@router.post("/{call_id}/unattended", response_model=CallOut)
async def mark_unattended(
    call_id: UUID,
    body: Optional[CallActionRequest] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    body = body or CallActionRequest()
    return await actions.mark_unattended(
        session, call_id, agent_id=user.id, remarks=body.remarks, duration=body.duration
    )


@router.post("/{call_id}/callback", response_model=CallOut)
async def mark_callback(
    call_id: UUID,
    body: Optional[CallActionRequest] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    body = body or CallActionRequest()
    return await actions.mark_callback(
        session, call_id, agent_id=user.id, remarks=body.remarks, duration=body.duration
    )


@router.post("/{call_id}/upsell", response_model=CallOut)
async def accept_upsell(
    call_id: UUID,
    body: UpsellRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await actions.accept_upsell(
        session,
        call_id,
        body.new_sku,
        manual_price=body.new_price,
        agent_id=user.id,
        notes=body.notes,
    )


@router.post("/{call_id}/upsell/offer", response_model=CallOut)
async def offer_upsell(
    call_id: UUID,
    body: Optional[NoteRequest] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    notes = body.notes if body else None
    return await actions.offer_upsell(session, call_id, agent_id=user.id, notes=notes)


@router.post("/{call_id}/upsell/decline", response_model=CallOut)
async def decline_upsell(
    call_id: UUID,
    body: Optional[CallActionRequest] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    body = body or CallActionRequest()
    return await actions.decline_upsell(
        session, call_id, agent_id=user.id, remarks=body.remarks, duration=body.duration
    )


@router.post("/{call_id}/confirm", response_model=CallOut)
async def confirm_order(
    call_id: UUID,
    body: Optional[NoteRequest] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    notes = body.notes if body else None
    return await actions.confirm_order(session, call_id, agent_id=user.id, notes=notes)


@router.post("/{call_id}/reset", response_model=CallOut)
async def reset_call(
    call_id: UUID,
    body: Optional[NoteRequest] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    notes = body.notes if body else None
    return await actions.reset_call(session, call_id, agent_id=user.id, notes=notes)
