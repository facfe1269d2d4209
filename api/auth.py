"""
Auth API

Registration, credential check and the current-user lookup.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_session
from api.security import authenticate, get_current_user, hash_password
from db.models import User, UserRole
from db.repositories import users as users_repo
from schemas import LoginRequest, UserCreate, UserOut

router = APIRouter()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(body: UserCreate, session: AsyncSession = Depends(get_session)):
    """Self-registration always creates an agent; admins come from the CLI."""
    return await users_repo.create(
        session,
        username=body.username,
        password_hash=hash_password(body.password),
        role=UserRole.AGENT.value,
    )


@router.post("/login", response_model=UserOut)
async def login(body: LoginRequest, session: AsyncSession = Depends(get_session)):
    user = await authenticate(session, body.username, body.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    return user


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    return user
