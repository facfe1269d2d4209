"""Shared FastAPI dependencies."""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from db.connection import get_db


async def get_session() -> AsyncIterator[AsyncSession]:
    """One session per request: commit on success, roll back on error."""
    async with get_db() as session:
        yield session
