"""Organization (tenant) provisioning and lookup."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.db import crud
from echosphere.db.engine import get_db
from echosphere.dependencies import require_auth
from echosphere.models import User
from echosphere.schemas import OrganizationCreate, OrganizationRead
from echosphere.services.auth import AuthContext
from echosphere.services.provisioning import create_organization, resolve_slug, DEMO_ORGANIZATION

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


@router.post("", response_model=OrganizationRead, status_code=201)
async def provision_organization(
    body: OrganizationCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Provisioning wizard: create the organization and make the caller its staff."""
    creator = await db.get(User, auth.user_id)
    try:
        return await create_organization(body, db, creator=creator)
    except IntegrityError:
        # Lost a race for the same slug
        await db.rollback()
        raise HTTPException(409, "An organization with this region code was just created; try again")


@router.get("", response_model=list[OrganizationRead])
async def list_organizations(db: AsyncSession = Depends(get_db)):
    return await crud.list_organizations(db)


@router.get("/by-slug/{slug}", response_model=OrganizationRead)
async def get_organization_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    org = await resolve_slug(db, slug)
    if not org:
        raise HTTPException(404, "Organization not found")
    return org


@router.get("/{org_id}", response_model=OrganizationRead)
async def get_organization(org_id: str, db: AsyncSession = Depends(get_db)):
    org = await crud.get_organization(db, org_id)
    if org:
        return org
    if org_id == DEMO_ORGANIZATION.id:
        return DEMO_ORGANIZATION
    raise HTTPException(404, "Organization not found")
