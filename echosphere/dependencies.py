"""FastAPI dependency providers for settings, auth and staff enforcement."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.config import Settings, get_settings
from echosphere.db.engine import get_db
from echosphere.services.auth import AuthContext, get_current_user, get_optional_user


@lru_cache
def get_settings_dep() -> Settings:
    return get_settings()


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid authenticated session. Returns AuthContext."""
    return await get_current_user(request, db)


async def optional_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext | None:
    """Anonymous residents are allowed; returns None for them."""
    return await get_optional_user(request, db)


def ensure_staff(auth: AuthContext, organization_id: str) -> None:
    """Raise 403 unless the caller is staff of the given organization."""
    if not auth.is_staff_of(organization_id):
        raise HTTPException(403, "Insufficient permissions")


async def require_org_staff(
    org_id: str,
    auth: AuthContext = Depends(require_auth),
) -> AuthContext:
    """Path-scoped variant of ensure_staff for routes under /organizations/{org_id}."""
    ensure_staff(auth, org_id)
    return auth
