"""
Agent management API (admin only)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_session
from api.security import hash_password, require_admin
from db.repositories import users as users_repo
from errors import NotFoundError
from schemas import UserCreate, UserOut, UserUpdate

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("", response_model=list[UserOut])
async def list_agents(
    active_only: bool = Query(False),
    session: AsyncSession = Depends(get_session),
):
    return await users_repo.list_agents(session, active_only=active_only)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_agent(body: UserCreate, session: AsyncSession = Depends(get_session)):
    return await users_repo.create(
        session,
        username=body.username,
        password_hash=hash_password(body.password),
        role=body.role,
    )


@router.put("/{user_id}", response_model=UserOut)
async def update_agent(
    user_id: UUID,
    body: UserUpdate,
    session: AsyncSession = Depends(get_session),
):
    data = body.model_dump(exclude_unset=True)
    password = data.pop("password", None)
    if password:
        data["password_hash"] = hash_password(password)
    user = await users_repo.update(session, user_id, data)
    if user is None:
        raise NotFoundError("User", user_id)
    return user
