from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fomi.core.errors import AuthError
from fomi.core.logging import auth_logger
from fomi.core.security import session_user_id
from fomi.db.database import get_db
from fomi.db.models import User
from fomi.services.forms import FormStore

bearer = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Session user when a valid bearer token is present, else None.

    An invalid token is treated like no session on the read-only paths that
    use this dependency.
    """
    if credentials is None:
        return None
    try:
        user_id = session_user_id(credentials.credentials)
    except AuthError:
        auth_logger.debug("Ignoring invalid session token on optional path")
        return None
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    if user is None:
        raise AuthError("Unauthorized")
    return user


async def get_form_store(db: AsyncSession = Depends(get_db)) -> FormStore:
    return FormStore(db)
