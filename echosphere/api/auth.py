"""Auth API: signup, login, logout, current identity."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.db import crud
from echosphere.db.engine import get_db
from echosphere.dependencies import require_auth
from echosphere.schemas import SignupRequest, LoginRequest, Identity
from echosphere.services.auth import (
    AuthContext, verify_password, hash_password, SESSION_COOKIE_NAME,
    SESSION_MAX_AGE_DAYS, create_session, remove_session, _request_token,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_response(user, token: str, status_code: int = 200) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content={
        "ok": True, "token": token, "user_id": user.id, "role": user.role,
    })
    response.set_cookie(
        SESSION_COOKIE_NAME, token,
        httponly=True, samesite="lax",
        max_age=86400 * SESSION_MAX_AGE_DAYS,
    )
    return response


@router.post("/signup")
async def signup(
    body: SignupRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    if "@" not in body.email:
        raise HTTPException(422, "Invalid email address")
    if await crud.get_user_by_email(db, body.email):
        raise HTTPException(409, "An account with this email already exists")

    user = await crud.create_user(
        db, body.email, hash_password(body.password), display_name=body.display_name,
    )
    ip = request.client.host if request.client else ""
    token = await create_session(user, db, ip_address=ip)
    return _session_response(user, token, status_code=201)


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await crud.get_user_by_email(db, body.email)
    if not user or not user.is_active or not verify_password(body.password, user.password_hash):
        return JSONResponse(status_code=401, content={"detail": "Invalid credentials"})

    ip = request.client.host if request.client else ""
    token = await create_session(user, db, ip_address=ip)

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    return _session_response(user, token)


@router.post("/logout")
async def logout(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    token = _request_token(request)
    if token:
        await remove_session(token, db)
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/me", response_model=Identity)
async def me(auth: AuthContext = Depends(require_auth)):
    return Identity(
        id=auth.user_id,
        email=auth.email,
        display_name=auth.display_name,
        role=auth.role,
        organization_id=auth.organization_id,
    )
