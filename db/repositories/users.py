"""User repository: accounts, roles and the active agent roster."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import User, UserRole
from errors import ConflictError

logger = logging.getLogger(__name__)


async def get(session: AsyncSession, user_id: UUID) -> Optional[User]:
    """Return the User with this id, or None."""
    return await session.get(User, user_id)


async def get_by_username(session: AsyncSession, username: str) -> Optional[User]:
    """Return the User with this username, or None."""
    result = await session.execute(
        select(User).where(User.username == username.strip())
    )
    return result.scalar_one_or_none()


async def create(
    session: AsyncSession,
    username: str,
    password_hash: str,
    role: str = UserRole.AGENT.value,
    is_active: bool = True,
) -> User:
    """Insert a user. Raises ConflictError if the username is taken."""
    username = username.strip()
    if await get_by_username(session, username) is not None:
        raise ConflictError(f"Username {username!r} already exists")
    user = User(
        username=username,
        password_hash=password_hash,
        role=UserRole(role).value,
        is_active=is_active,
    )
    session.add(user)
    await session.flush()
    logger.info("Created %s user %s", user.role, user.username)
    return user


async def update(session: AsyncSession, user_id: UUID, data: dict) -> Optional[User]:
    """Apply a partial update. Returns None when the user does not exist.

    data dict keys: username, password_hash, role, is_active
    """
    if not data:
        return await get(session, user_id)
    if "username" in data:
        existing = await get_by_username(session, data["username"])
        if existing is not None and existing.id != user_id:
            raise ConflictError(f"Username {data['username']!r} already exists")
    result = await session.execute(
        sa_update(User)
        .where(User.id == user_id)
        .values(**data)
        .returning(User),
        execution_options={"populate_existing": True},
    )
    await session.flush()
    return result.scalar_one_or_none()


async def list_agents(session: AsyncSession, active_only: bool = False) -> list[User]:
    """Return agent-role users ordered by username (the round-robin order)."""
    stmt = select(User).where(User.role == UserRole.AGENT.value)
    if active_only:
        stmt = stmt.where(User.is_active == True)  # noqa: E712
    result = await session.execute(stmt.order_by(User.username))
    return list(result.scalars().all())
