# backend/scaleflow/api/v1/auth.py
from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from scaleflow.auth.permissions import SessionPermissions
from scaleflow.core.clock import as_utc, utcnow
from scaleflow.core.config import settings
from scaleflow.core.routes import get_accessible_routes
from scaleflow.core.security import (
    bearer_scheme,
    codes_match,
    create_access_token,
    decode_access_token,
    generate_magic_code,
    optional_bearer_scheme,
)
from scaleflow.db.session import get_db
from scaleflow.models.user import User
from scaleflow.schemas.auth import (
    MagicCodeRequest,
    MagicCodeVerify,
    MeResponse,
    PermissionsResponse,
    ProfileUpdateRequest,
    TokenResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MAGIC_CODE_EXPIRY_MINUTES = 10


def _should_return_magic_code_in_response() -> bool:
    # Never in production; elsewhere honour the explicit toggle, default on.
    if settings.is_production:
        return False
    if settings.RETURN_MAGIC_CODE_IN_RESPONSE is not None:
        return settings.RETURN_MAGIC_CODE_IN_RESPONSE
    return True


async def purge_expired_magic_codes(db: AsyncSession) -> None:
    stmt = (
        update(User)
        .where(User.magic_code_expires_at.is_not(None))
        .where(User.magic_code_expires_at < utcnow())
        .values(magic_code=None, magic_code_expires_at=None)
    )
    await db.execute(stmt)


@router.post("/request-code")
async def request_code(payload: MagicCodeRequest, db: AsyncSession = Depends(get_db)):
    """
    Body: {"email": "user@example.com"}
    Registers the email on first use and issues a one-time login code.
    """
    email = payload.email.strip().lower()

    await purge_expired_magic_codes(db)

    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    if user is None:
        user = User(email=email, is_active=True)
        db.add(user)
        await db.flush()
        logger.info("registered new user %s", user.id)

    code = generate_magic_code()
    user.magic_code = code
    user.magic_code_expires_at = utcnow() + timedelta(minutes=MAGIC_CODE_EXPIRY_MINUTES)

    await db.commit()

    resp = {"status": "ok", "expires_in_minutes": MAGIC_CODE_EXPIRY_MINUTES}
    if _should_return_magic_code_in_response():
        resp["code"] = code
    return resp


@router.post("/verify-code", response_model=TokenResponse)
async def verify_code(payload: MagicCodeVerify, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """
    Body: {"email":"user@example.com","code":"123456"}
    Returns: access_token
    """
    email = payload.email.strip().lower()
    code = payload.code.strip()

    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="code is required")

    await purge_expired_magic_codes(db)

    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    if not user or not user.magic_code or not user.magic_code_expires_at:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    if not codes_match(user.magic_code, code):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    if as_utc(user.magic_code_expires_at) < utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Code expired")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive")

    # One-time use
    user.magic_code = None
    user.magic_code_expires_at = None
    await db.commit()

    return TokenResponse(access_token=create_access_token(subject=str(user.id)))


async def get_current_user(
    credentials=Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency for protected endpoints.
    """
    user_id = decode_access_token(credentials.credentials)

    try:
        user_uuid = uuid.UUID(str(user_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")

    user = await db.get(User, user_uuid)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive")

    return user


async def get_optional_user(
    credentials=Depends(optional_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Like get_current_user, but anonymous callers get None instead of a 401.
    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    return await get_current_user(credentials=credentials, db=db)


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    return user


@router.patch("/me", response_model=MeResponse)
async def update_me(
    payload: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Profile settings: first_name, last_name, avatar_url ("" clears it).
    Role and company are not editable here.
    """
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    for field, value in data.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    return user


@router.get("/me/permissions", response_model=PermissionsResponse)
async def my_permissions(user: User = Depends(get_current_user)) -> PermissionsResponse:
    perms = SessionPermissions(user_id=user.id, role=user.role, company_id=user.company_id)
    paths = [r.path for r in get_accessible_routes(perms)]
    return PermissionsResponse.from_summary(perms.summary(), paths)
