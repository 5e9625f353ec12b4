"""Provision a new organization (tenant) and resolve organizations by slug."""

from __future__ import annotations

import re

from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.db import crud
from echosphere.models import Organization, User
from echosphere.schemas import OrganizationCreate, OrganizationRead

DEMO_SLUG = "demo"
DEFAULT_CENTER = {"x": -118.2437, "y": 34.0522}

DEMO_ORGANIZATION = OrganizationRead(
    id="demo-org",
    name="Demo City",
    slug=DEMO_SLUG,
    center=DEFAULT_CENTER,
    focus_area="Urban Development",
    questions=[],
)


def slugify(code: str) -> str:
    """Convert a region code to a lowercase URL-safe slug."""
    slug = code.lower().strip()
    slug = re.sub(r'[^a-z0-9]+', '-', slug)
    slug = slug.strip('-')
    return slug or "org"


async def _free_slug(db: AsyncSession, base: str) -> str:
    """First of ``base``, ``base-2``, ``base-3``... not taken and not reserved."""
    slug, n = base, 1
    # Slugs are unique and immutable: suffix instead of reusing
    while slug == DEMO_SLUG or await crud.get_organization_by_slug(db, slug):
        n += 1
        slug = f"{base}-{n}"
    return slug


async def create_organization(
    setup: OrganizationCreate,
    db: AsyncSession,
    creator: User | None = None,
) -> Organization:
    """Create an organization from the provisioning wizard.

    The creator, when given, becomes staff of the new organization.
    """
    slug = await _free_slug(db, slugify(setup.region_code))

    org = await crud.create_organization(
        db,
        name=setup.name,
        slug=slug,
        center=setup.center.model_dump(),
        focus_area=setup.focus_area,
        questions=setup.questions,
    )

    if creator is not None:
        creator.organization_id = org.id
        creator.role = "staff"
        await db.commit()

    return org


async def resolve_slug(db: AsyncSession, slug: str) -> OrganizationRead | None:
    """Look an organization up by slug; ``demo`` falls back to the built-in Demo City."""
    org = await crud.get_organization_by_slug(db, slug)
    if org:
        return OrganizationRead.model_validate(org)
    if slug.lower() == DEMO_SLUG:
        return DEMO_ORGANIZATION
    return None


async def get_writable_organization(db: AsyncSession, org_id: str) -> Organization | None:
    """Fetch an organization for writes, storing the built-in Demo City on first use."""
    org = await crud.get_organization(db, org_id)
    if org or org_id != DEMO_ORGANIZATION.id:
        return org
    demo = Organization(
        id=DEMO_ORGANIZATION.id,
        name=DEMO_ORGANIZATION.name,
        slug=DEMO_SLUG,
        center=dict(DEFAULT_CENTER),
        focus_area=DEMO_ORGANIZATION.focus_area,
        questions=[],
    )
    db.add(demo)
    await db.commit()
    await db.refresh(demo)
    return demo
