"""
Authentication

Passwords are stored as scrypt digests ("<hex digest>.<hex salt>"). Requests
authenticate with HTTP Basic on every call; there is no server-side session.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_session
from db.models import User
from db.repositories import users as users_repo

logger = logging.getLogger(__name__)

_SCRYPT_N = 16384
_SCRYPT_R = 8
_SCRYPT_P = 1
_KEY_LEN = 64

basic_auth = HTTPBasic(auto_error=False)


def _scrypt(password: str, salt: str) -> str:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=_KEY_LEN,
    ).hex()


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    return f"{_scrypt(password, salt)}.{salt}"


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        digest, salt = stored_hash.split(".", 1)
    except ValueError:
        return False
    return hmac.compare_digest(_scrypt(password, salt), digest)


async def authenticate(session: AsyncSession, username: str, password: str) -> Optional[User]:
    """Return the active user matching the credentials, or None."""
    user = await users_repo.get_by_username(session, username)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def get_current_user(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the request's user from HTTP Basic credentials."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
    user = await authenticate(session, credentials.username, credentials.password)
    if user is None:
        logger.info("Rejected credentials for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
