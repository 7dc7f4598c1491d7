from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fomi.api.deps import get_current_user
from fomi.core.config import settings
from fomi.core.errors import AuthError
from fomi.core.logging import auth_logger
from fomi.core.security import create_access_token, generate_magic_token, hash_magic_token
from fomi.db.database import get_db
from fomi.db.models import User, VerificationToken
from fomi.services.mailer import send_login_email

router = APIRouter()


class MagicLinkRequest(BaseModel):
    email: EmailStr
    callback_url: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    image: Optional[str]

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def build_magic_link(token: str, callback_url: Optional[str] = None) -> str:
    params = {"token": token}
    if callback_url:
        params["callbackURL"] = callback_url
    return f"{settings.APP_BASE_URL}/api/auth/magic-link/verify?{urlencode(params)}"


@router.post("/magic-link", status_code=status.HTTP_202_ACCEPTED)
async def request_magic_link(request: MagicLinkRequest, db: AsyncSession = Depends(get_db)):
    email = request.email.lower()
    token = generate_magic_token()
    db.add(VerificationToken(
        email=email,
        token_hash=hash_magic_token(token),
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.MAGIC_LINK_EXPIRATION_MINUTES),
    ))
    await db.commit()

    await send_login_email(build_magic_link(token, request.callback_url), email)
    auth_logger.info("Magic link issued", email=email)
    return {"success": True}


@router.get("/magic-link/verify", response_model=TokenResponse)
async def verify_magic_link(token: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(VerificationToken).where(VerificationToken.token_hash == hash_magic_token(token))
    )
    record = result.scalar_one_or_none()
    now = datetime.now(timezone.utc)
    if not record or record.used_at is not None:
        raise AuthError("Invalid or already used sign-in link")
    if _as_utc(record.expires_at) < now:
        raise AuthError("Sign-in link has expired")
    record.used_at = now

    result = await db.execute(select(User).where(User.email == record.email))
    user = result.scalar_one_or_none()
    if not user:
        user = User(email=record.email, name=record.email.split("@")[0], email_verified=True)
        db.add(user)
        auth_logger.info("Created user on first sign-in", email=record.email)
    else:
        user.email_verified = True
    await db.commit()
    await db.refresh(user)

    access_token = create_access_token(data={"sub": str(user.id), "email": user.email})
    return TokenResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.get("/session")
async def get_session(user: User = Depends(get_current_user)):
    return {"user": UserResponse.model_validate(user).model_dump()}


@router.post("/logout")
async def logout():
    # Session tokens are dropped client-side
    return {"message": "Successfully logged out"}
